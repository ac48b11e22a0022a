"""Conftest utilities for the cimatrix test suite.

Modules
-------
environment
    Logging configuration for tests
"""

from tests._conftest.environment import configure_test_logging

__all__ = ["configure_test_logging"]
