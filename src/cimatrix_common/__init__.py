"""Shared utilities for the cimatrix packages."""
