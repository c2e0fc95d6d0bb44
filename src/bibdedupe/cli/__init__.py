"""Command-line interface for bibdedupe."""

from bibdedupe.cli.main import cli

__all__ = ["cli"]
