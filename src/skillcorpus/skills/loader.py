"""
Corpus loading.

Reads every skill file under a root directory and parses it into a
SkillDocument. Parsing is fanned out to a thread pool; results are joined
back on the calling thread in sorted file order, so the outcome never
depends on scheduling.
"""

from __future__ import annotations

import collections.abc as _abc
import concurrent.futures as _futures
import dataclasses as _dataclasses
import logging as _logging
import pathlib as _pathlib
import time as _time
import typing as _typing

import skillcorpus.constants as constants
import skillcorpus.skills.discovery as discovery
import skillcorpus.skills.document as document
import skillcorpus.skills.parser as parser

if _typing.TYPE_CHECKING:
    import skillcorpus.config as config
    import skillcorpus.logging.journal as _journal

_logger = _logging.getLogger(__name__)


class IOFailure(Exception):
    """The corpus root (or, in strict mode, a skill file) could not be read."""

    def __init__(self, path: _pathlib.Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class DuplicateDocumentError(Exception):
    """Two documents in the same category share a title."""

    def __init__(
        self,
        title: str,
        category: str,
        first_path: _pathlib.Path | None,
        second_path: _pathlib.Path | None,
    ) -> None:
        self.title = title
        self.category = category
        self.first_path = first_path
        self.second_path = second_path
        super().__init__(
            f"Duplicate skill '{title}' in category '{category}': "
            f"{first_path} and {second_path}"
        )


@_dataclasses.dataclass(frozen=True)
class FileFailure:
    """A file that was skipped because it could not be read or decoded."""

    path: _pathlib.Path
    error: str

    def to_dict(self) -> dict[str, _typing.Any]:
        return {"path": str(self.path), "error": self.error}


class LoadResult(_abc.Sequence):
    """
    Outcome of loading a corpus.

    Behaves as an ordered, read-only sequence of SkillDocument (sorted by
    file path) and additionally carries the files that were skipped.
    """

    def __init__(
        self,
        root: _pathlib.Path,
        documents: _typing.Iterable[document.SkillDocument],
        failures: _typing.Iterable[FileFailure] = (),
    ) -> None:
        self._root = root
        self._documents = tuple(documents)
        self._failures = tuple(failures)

    @property
    def root(self) -> _pathlib.Path:
        return self._root

    @property
    def documents(self) -> tuple[document.SkillDocument, ...]:
        return self._documents

    @property
    def failures(self) -> tuple[FileFailure, ...]:
        return self._failures

    @property
    def parse_warnings(self) -> list[document.ParseWarning]:
        """All parse warnings across all documents, in document order."""
        return [w for doc in self._documents for w in doc.parse_warnings]

    def __getitem__(self, index: _typing.Any) -> _typing.Any:
        return self._documents[index]

    def __len__(self) -> int:
        return len(self._documents)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoadResult):
            return NotImplemented
        return (
            self._documents == other._documents
            and self._failures == other._failures
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"LoadResult(root={str(self._root)!r}, documents={len(self._documents)}, "
            f"failures={len(self._failures)})"
        )

    def by_category(self) -> dict[str, list[document.SkillDocument]]:
        """Documents grouped by category, categories in sorted order."""
        grouped: dict[str, list[document.SkillDocument]] = {}
        for doc in sorted(self._documents, key=lambda d: d.category):
            grouped.setdefault(doc.category, []).append(doc)
        return grouped

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "root": str(self._root),
            "documents": [d.to_dict() for d in self._documents],
            "failures": [f.to_dict() for f in self._failures],
        }


@_dataclasses.dataclass(frozen=True)
class _Outcome:
    path: _pathlib.Path
    doc: document.SkillDocument | None = None
    failure: FileFailure | None = None


class CorpusLoader:
    """
    Loads a skill corpus from disk.

    Each file is read and parsed independently; workers share nothing
    mutable. Duplicate detection and aggregation happen after all workers
    finish.
    """

    def __init__(
        self,
        *,
        parallel: bool = True,
        max_workers: int = constants.DEFAULT_MAX_WORKERS,
        strict_io: bool = False,
        extensions: _typing.Iterable[str] = constants.DEFAULT_EXTENSIONS,
        exclude_dirs: _typing.Iterable[str] = constants.DEFAULT_EXCLUDE_DIRS,
        exclude_files: _typing.Iterable[str] = constants.DEFAULT_EXCLUDE_FILES,
        journal: _journal.LoadJournal | None = None,
    ) -> None:
        """
        Initialize the loader.

        Args:
            parallel: Parse files on a thread pool.
            max_workers: Upper bound on pool size.
            strict_io: Raise IOFailure for an unreadable skill file instead
                       of recording it in LoadResult.failures.
            extensions: File suffixes treated as skill documents.
            exclude_dirs: Directory names never descended into.
            exclude_files: File names never loaded.
            journal: Optional journal that receives load events.
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self._parallel = parallel
        self._max_workers = max_workers
        self._strict_io = strict_io
        self._extensions = tuple(extensions)
        self._exclude_dirs = tuple(exclude_dirs)
        self._exclude_files = tuple(exclude_files)
        self._journal = journal

    @classmethod
    def from_settings(
        cls,
        settings: config.Settings,
        *,
        journal: _journal.LoadJournal | None = None,
    ) -> CorpusLoader:
        """Build a loader from the corpus and loader sections of Settings."""
        return cls(
            parallel=settings.loader.parallel,
            max_workers=settings.loader.max_workers,
            strict_io=settings.loader.strict_io,
            extensions=settings.corpus.extensions,
            exclude_dirs=settings.corpus.exclude_dirs,
            exclude_files=settings.corpus.exclude_files,
            journal=journal,
        )

    def load_file(
        self,
        path: _pathlib.Path | str,
        *,
        root: _pathlib.Path | str | None = None,
    ) -> document.SkillDocument:
        """
        Load a single skill file.

        The category is taken from the file's location under ``root`` when
        given; otherwise from the document's own metadata.

        Raises:
            IOFailure: If the file cannot be read or decoded.
        """
        path = _pathlib.Path(path)
        category = None
        if root is not None:
            category = discovery.category_for_path(path, _pathlib.Path(root))
        try:
            return parser.parse_skill_file(path, category=category)
        except (OSError, UnicodeDecodeError) as e:
            raise IOFailure(path, str(e)) from e

    def load_all(self, root: _pathlib.Path | str) -> LoadResult:
        """
        Load every skill document under ``root``.

        Raises:
            IOFailure: If the root does not exist, is not a directory or
                       cannot be listed (or a file is unreadable in strict mode).
            DuplicateDocumentError: If two documents in one category share
                                    a title.
        """
        root_path = _pathlib.Path(root).expanduser()
        if not root_path.exists():
            raise IOFailure(root_path, "no such directory")
        if not root_path.is_dir():
            raise IOFailure(root_path, "not a directory")

        started = _time.perf_counter()
        failures: list[FileFailure] = []

        def on_walk_error(error: OSError) -> None:
            failed = _pathlib.Path(error.filename) if error.filename else root_path
            reason = error.strerror or str(error)
            if failed == root_path or self._strict_io:
                raise IOFailure(failed, reason) from error
            _logger.warning("Skipping unreadable directory %s: %s", failed, reason)
            failures.append(FileFailure(path=failed, error=reason))
            if self._journal:
                self._journal.log_file_failed(failed, reason)

        files = discovery.iter_skill_files(
            root_path,
            extensions=self._extensions,
            exclude_dirs=self._exclude_dirs,
            exclude_files=self._exclude_files,
            on_error=on_walk_error,
        )
        _logger.debug("Found %d skill files under %s", len(files), root_path)
        if self._journal:
            self._journal.log_load_start(root_path, len(files))

        documents: list[document.SkillDocument] = []
        for outcome in self._run(files, root_path):
            if outcome.failure is not None:
                failures.append(outcome.failure)
                if self._journal:
                    self._journal.log_file_failed(
                        outcome.failure.path, outcome.failure.error
                    )
            elif outcome.doc is not None:
                documents.append(outcome.doc)
                if self._journal:
                    self._journal.log_document_loaded(outcome.doc)

        self._check_duplicates(documents)

        result = LoadResult(root_path, documents, failures)
        elapsed_ms = (_time.perf_counter() - started) * 1000
        _logger.info(
            "Loaded %d skills from %s (%d skipped, %d parse warnings) in %.1f ms",
            len(result),
            root_path,
            len(result.failures),
            len(result.parse_warnings),
            elapsed_ms,
        )
        if self._journal:
            self._journal.log_load_end(
                document_count=len(result),
                failure_count=len(result.failures),
                warning_count=len(result.parse_warnings),
                duration_ms=elapsed_ms,
            )
        return result

    def _run(
        self,
        files: list[_pathlib.Path],
        root: _pathlib.Path,
    ) -> list[_Outcome]:
        """Parse files, in parallel when enabled; output keeps input order."""

        def work(path: _pathlib.Path) -> _Outcome:
            return self._load_one(path, root)

        workers = min(self._max_workers, len(files))
        if not self._parallel or workers <= 1:
            return [work(path) for path in files]

        with _futures.ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix="skillcorpus-load",
        ) as executor:
            # map() yields in submission order and re-raises worker errors
            return list(executor.map(work, files))

    def _load_one(self, path: _pathlib.Path, root: _pathlib.Path) -> _Outcome:
        category = discovery.category_for_path(path, root)
        try:
            doc = parser.parse_skill_file(path, category=category)
        except (OSError, UnicodeDecodeError) as e:
            if self._strict_io:
                raise IOFailure(path, str(e)) from e
            _logger.warning("Skipping unreadable skill file %s: %s", path, e)
            return _Outcome(path=path, failure=FileFailure(path=path, error=str(e)))
        return _Outcome(path=path, doc=doc)

    def _check_duplicates(self, documents: list[document.SkillDocument]) -> None:
        """Titles are unique per category; empty titles never collide."""
        seen: dict[tuple[str, str], document.SkillDocument] = {}
        for doc in documents:
            title = doc.title.strip()
            if not title:
                continue
            key = (doc.category, title.casefold())
            first = seen.get(key)
            if first is None:
                seen[key] = doc
                continue
            if self._journal:
                self._journal.log_duplicate(title, doc.category, first.path, doc.path)
            raise DuplicateDocumentError(title, doc.category, first.path, doc.path)


def load_all(
    root: _pathlib.Path | str,
    *,
    settings: config.Settings | None = None,
    **kwargs: _typing.Any,
) -> LoadResult:
    """
    Load every skill document under ``root``.

    Args:
        root: Corpus root directory.
        settings: If given, loader options come from it and ``kwargs``
                  are ignored.
        **kwargs: CorpusLoader options (parallel, max_workers, strict_io, ...).

    Raises:
        IOFailure: If the root cannot be read.
        DuplicateDocumentError: If titles collide within a category.
    """
    if settings is not None:
        loader = CorpusLoader.from_settings(settings, journal=kwargs.get("journal"))
    else:
        loader = CorpusLoader(**kwargs)
    return loader.load_all(root)
