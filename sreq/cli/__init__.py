"""Command-line interface for sreq."""
