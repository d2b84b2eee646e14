"""
Unit Tests for the Narrow Chess Engine

This package contains unit tests for all engine components.

Running Tests:
    # Run all tests
    pytest tests/

    # Run specific test file
    pytest tests/test_board.py

    # Run with coverage
    pytest tests/ --cov=narrow_chess --cov-report=html

    # Run specific test
    pytest tests/test_search.py::TestExactSolver::test_mate_in_one

Dependencies:
    - pytest: Test framework
    - pytest-cov: Coverage reporting
"""
