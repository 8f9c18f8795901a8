"""
Skill file discovery.

A corpus is a directory tree whose first level names the category:

    <root>/<category>/<skill>.md
    <root>/<category>/<skill>/SKILL.md

Hidden directories and configured exclusions are never descended into.
Files are yielded in sorted order so every load sees the same sequence.
"""

from __future__ import annotations

import os as _os
import pathlib as _pathlib
import typing as _typing

import skillcorpus.constants as constants


def category_for_path(path: _pathlib.Path, root: _pathlib.Path) -> str | None:
    """
    Category of a file from its location.

    Returns:
        The first directory below the root, or None for files that sit
        directly in the root.
    """
    relative = path.relative_to(root)
    if len(relative.parts) < 2:
        return None
    return relative.parts[0]


def iter_skill_files(
    root: _pathlib.Path,
    *,
    extensions: _typing.Iterable[str] = constants.DEFAULT_EXTENSIONS,
    exclude_dirs: _typing.Iterable[str] = constants.DEFAULT_EXCLUDE_DIRS,
    exclude_files: _typing.Iterable[str] = constants.DEFAULT_EXCLUDE_FILES,
    on_error: _typing.Callable[[OSError], None] | None = None,
) -> list[_pathlib.Path]:
    """
    Find all skill documents under a root directory.

    Args:
        root: Corpus root.
        extensions: File suffixes to include (compared case-insensitively).
        exclude_dirs: Directory names to skip at any depth.
        exclude_files: File names to skip at any depth.
        on_error: Called with the OSError when a directory cannot be
                  listed. If None, unlistable directories are skipped.

    Returns:
        Sorted list of file paths.
    """
    suffixes = {ext.lower() for ext in extensions}
    skip_dirs = set(exclude_dirs)
    skip_files = set(exclude_files)
    found: list[_pathlib.Path] = []

    for dirpath, dirnames, filenames in _os.walk(root, onerror=on_error):
        # Prune in place so os.walk does not descend
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and d not in skip_dirs
        )
        base = _pathlib.Path(dirpath)
        for filename in sorted(filenames):
            if filename in skip_files or filename.startswith("."):
                continue
            if _pathlib.Path(filename).suffix.lower() in suffixes:
                found.append(base / filename)

    return sorted(found)
