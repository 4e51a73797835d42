"""CLI module for ptk."""
