"""Periodic Backblaze B2 folder sync with desktop notifications."""

__version__ = "0.1.0"
__all__ = ["__version__"]