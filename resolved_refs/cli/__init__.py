"""Command-line interface for resolved."""
