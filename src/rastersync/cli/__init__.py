"""Command-line interface for rastersync."""
