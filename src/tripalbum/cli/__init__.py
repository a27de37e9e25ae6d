"""Command-line interface for Trip Album."""

from tripalbum.cli.main import cli, main

__all__ = ["cli", "main"]
