"""
CLI module for Skillcorpus.

Provides the command-line interface using Click.
"""

from skillcorpus.cli.main import cli, main

__all__ = ["main", "cli"]
