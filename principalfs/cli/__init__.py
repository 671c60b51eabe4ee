"""principalfs command line interface."""

from principalfs.cli.main import app, main

__all__ = ["app", "main"]
