"""
Logging for Skillcorpus.

Provides console logging setup for the CLI and a JSONL journal of corpus
loads for debugging and auditing.
"""

import logging as _logging
import typing as _typing

from skillcorpus.logging.journal import LoadJournal, default_journal_dir

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

LogLevel = _typing.Literal["debug", "info", "warning", "error"]


def configure_logging(level: LogLevel = "warning") -> None:
    """
    Send skillcorpus log records to stderr at the given level.

    Safe to call more than once; the last call wins.
    """
    _logging.basicConfig(
        level=getattr(_logging, level.upper()),
        format=LOG_FORMAT,
        force=True,
    )


__all__ = [
    "LOG_FORMAT",
    "LoadJournal",
    "LogLevel",
    "configure_logging",
    "default_journal_dir",
]
