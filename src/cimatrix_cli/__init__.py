"""Command line interface for cimatrix."""

__version__ = "0.1.0"
