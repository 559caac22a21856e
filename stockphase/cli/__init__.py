"""CLI commands for stockphase.

This package provides the command-line interface: single-symbol analysis,
indicator inspection and batch scanning of CSV bar files.
"""

from stockphase.cli.main import cli, main

__all__ = ["cli", "main"]
