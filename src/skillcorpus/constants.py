"""
Shared constants for Skillcorpus.

This module provides a single source of truth for default values
that are used across multiple modules.
"""

# Corpus layout defaults
KNOWN_CATEGORIES: tuple[str, ...] = (
    "agents",
    "ai-ml",
    "ai",
    "simulation",
    "strategy",
    "finance",
)
"""Categories accepted by validation when no configured set is given."""

UNCATEGORIZED = "uncategorized"
"""Category for files directly under the root with no declared category."""

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md",)
"""File extensions treated as skill documents."""

DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    ".git",
    ".github",
    "node_modules",
    "__pycache__",
    "scripts",
    "cli",
)
"""Directory names never descended into. Hidden directories are always skipped."""

DEFAULT_EXCLUDE_FILES: tuple[str, ...] = (
    "README.md",
    "CHANGELOG.md",
    "CONTRIBUTING.md",
    "GETTING_STARTED.md",
    "LICENSE.md",
)
"""File names that are never parsed as skill documents."""

# Loading defaults
DEFAULT_MAX_WORKERS = 8
"""Default thread pool size for parallel loading."""

# Validation defaults
PLACEHOLDER_TITLES: tuple[str, ...] = ("undefined", "null", "none", "[object object]")
"""Sharp-edge titles that indicate a template rendered a missing field."""

# Truncation limits for display
DEFAULT_SUMMARY_MAX_CHARS = 200
"""Summaries longer than this are truncated (with '...') in listings."""
