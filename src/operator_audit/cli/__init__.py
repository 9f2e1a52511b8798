"""Command line interface for operator-audit."""
