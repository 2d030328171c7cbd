"""CLI module."""

from cgplens.cli.main import cli

__all__ = ["cli"]
