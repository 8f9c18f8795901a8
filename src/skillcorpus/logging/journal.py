"""
Load journal for Skillcorpus.

Records one corpus load as a JSONL file for debugging and auditing which
files were read, skipped or rejected.
"""

import datetime as _datetime
import json as _json
import os as _os
import pathlib as _pathlib
import tempfile as _tempfile
import typing as _typing

if _typing.TYPE_CHECKING:
    import skillcorpus.skills.document as _document


def default_journal_dir() -> _pathlib.Path:
    """Directory used when no journal directory is configured."""
    return _pathlib.Path(_tempfile.gettempdir()) / "skillcorpus-logs"


class LoadJournal:
    """
    Logs corpus load events to a JSONL file.

    Each line in the file is a JSON object representing an event:
    - load_start: Root path and number of files found
    - document_loaded: One parsed document (ref, title, warning count)
    - file_failed: A file that could not be read
    - duplicate_document: A title collision that aborted the load
    - load_end: Totals and duration

    Usage:
        with LoadJournal(log_dir="/tmp") as journal:
            loader = CorpusLoader(journal=journal)
            loader.load_all("skills")
    """

    def __init__(
        self,
        *,
        log_dir: _pathlib.Path | str | None = None,
        log_file: _pathlib.Path | str | None = None,
        private_mode: bool = True,
        enabled: bool = True,
    ) -> None:
        """
        Initialize the load journal.

        Args:
            log_dir: Directory for journal files (default: <tmp>/skillcorpus-logs).
            log_file: Explicit journal file path (overrides log_dir + auto name).
            private_mode: If True, set the journal directory to drwx------ (0o700).
            enabled: Whether journaling is enabled.
        """
        self._enabled = enabled
        self._file: _typing.TextIO | None = None
        self._file_path: _pathlib.Path | None = None
        self._run_id = _datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self._event_count = 0

        if not enabled:
            return

        if log_file:
            self._file_path = _pathlib.Path(log_file)
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
        else:
            base_dir = _pathlib.Path(log_dir) if log_dir else default_journal_dir()
            base_dir.mkdir(parents=True, exist_ok=True)

            if private_mode:
                _os.chmod(base_dir, 0o700)

            self._file_path = base_dir / f"skillcorpus_{self._run_id}.jsonl"

        # Held as instance state, closed in close()
        self._file = open(self._file_path, "w", encoding="utf-8")  # noqa: SIM115

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def file_path(self) -> _pathlib.Path | None:
        """Path of the journal file, or None when disabled."""
        return self._file_path

    @property
    def event_count(self) -> int:
        return self._event_count

    def _write_event(
        self,
        event_type: str,
        data: dict[str, _typing.Any],
    ) -> None:
        """Write an event to the journal file."""
        if not self._enabled or not self._file:
            return

        self._event_count += 1
        event = {
            "timestamp": _datetime.datetime.now().isoformat(),
            "event_number": self._event_count,
            "event_type": event_type,
            **data,
        }

        try:
            self._file.write(_json.dumps(event, default=str) + "\n")
            self._file.flush()
        except OSError:
            # Journal write failures must not abort a load
            pass

    def log_load_start(self, root: _pathlib.Path, file_count: int) -> None:
        """Log the start of a load."""
        self._write_event(
            "load_start",
            {"run_id": self._run_id, "root": str(root), "file_count": file_count},
        )

    def log_document_loaded(self, doc: "_document.SkillDocument") -> None:
        """Log a successfully parsed document."""
        self._write_event(
            "document_loaded",
            {
                "ref": doc.ref,
                "title": doc.title,
                "path": str(doc.path) if doc.path else None,
                "sharp_edges": len(doc.sharp_edges),
                "warnings": [w.code for w in doc.parse_warnings],
            },
        )

    def log_file_failed(self, path: _pathlib.Path, error: str) -> None:
        """Log a file that could not be read."""
        self._write_event("file_failed", {"path": str(path), "error": error})

    def log_duplicate(
        self,
        title: str,
        category: str,
        first_path: _pathlib.Path | None,
        second_path: _pathlib.Path | None,
    ) -> None:
        """Log a title collision within a category."""
        self._write_event(
            "duplicate_document",
            {
                "title": title,
                "category": category,
                "first_path": str(first_path),
                "second_path": str(second_path),
            },
        )

    def log_load_end(
        self,
        *,
        document_count: int,
        failure_count: int,
        warning_count: int,
        duration_ms: float,
    ) -> None:
        """Log the end of a load with totals."""
        self._write_event(
            "load_end",
            {
                "document_count": document_count,
                "failure_count": failure_count,
                "warning_count": warning_count,
                "duration_ms": round(duration_ms, 2),
            },
        )

    def close(self) -> None:
        """Close the journal file."""
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self) -> "LoadJournal":
        return self

    def __exit__(self, *args: _typing.Any) -> None:
        self.close()
