"""Detect issue tracker references in source comments and flag resolved ones."""

__version__ = "0.1.0"
