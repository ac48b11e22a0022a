"""Core CLI utilities and constants."""
