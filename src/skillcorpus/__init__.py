"""
Skillcorpus - skill document corpus tooling.

Loads a directory tree of Markdown skill documents into structured records,
validates them, and exposes a query surface and the hand-off graph between
skills.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("skillcorpus")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "Skillcorpus Contributors"

from skillcorpus.config import Settings  # noqa: E402
from skillcorpus.skills import SkillCorpus, SkillDocument, load_all  # noqa: E402

__all__ = ["__version__", "__version_info__", "Settings", "SkillCorpus", "SkillDocument", "load_all"]
