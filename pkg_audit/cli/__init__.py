"""Command-line interface for pkg-audit."""
