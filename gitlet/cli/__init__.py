"""Command-line interface for gitlet."""

from .main import cli, main

__all__ = ["cli", "main"]
