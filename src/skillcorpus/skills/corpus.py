"""
Skill corpus facade.

Coordinates loading, name resolution, querying, validation and the
hand-off graph for one corpus root. Loading is deferred until first use.
"""

from __future__ import annotations

import pathlib as _pathlib
import typing as _typing

import skillcorpus.constants as constants
import skillcorpus.skills.document as document
import skillcorpus.skills.graph as graph_module
import skillcorpus.skills.index as index_module
import skillcorpus.skills.loader as loader
import skillcorpus.skills.query as query_module
import skillcorpus.skills.validation as validation

if _typing.TYPE_CHECKING:
    import skillcorpus.config as _config
    import skillcorpus.logging.journal as _journal


class SkillCorpus:
    """
    A loaded skill corpus.

    Handles:
    - Lazy loading of the corpus root
    - Lookup by ref, slug or title
    - Listing, search and composed queries
    - Validation and the hand-off graph
    """

    def __init__(
        self,
        root: _pathlib.Path | str,
        *,
        corpus_loader: loader.CorpusLoader | None = None,
        known_categories: _typing.Iterable[str] = constants.KNOWN_CATEGORIES,
        placeholder_titles: _typing.Iterable[str] = constants.PLACEHOLDER_TITLES,
        check_references: bool = True,
        summary_max_chars: int = constants.DEFAULT_SUMMARY_MAX_CHARS,
    ) -> None:
        """
        Initialize the corpus.

        Args:
            root: Corpus root directory.
            corpus_loader: Loader to use (default: CorpusLoader()).
            known_categories: Categories accepted by validation.
            placeholder_titles: Sharp-edge titles flagged by validation.
            check_references: Report unresolved references in validate().
            summary_max_chars: Truncation length for summaries in listings.
        """
        self._root = _pathlib.Path(root).expanduser()
        self._loader = corpus_loader or loader.CorpusLoader()
        self._known_categories = tuple(known_categories)
        self._placeholder_titles = tuple(placeholder_titles)
        self._check_references = check_references
        self._summary_max_chars = summary_max_chars
        self._result: loader.LoadResult | None = None
        self._index: index_module.SkillIndex | None = None

    @classmethod
    def from_settings(
        cls,
        settings: _config.Settings,
        *,
        root: _pathlib.Path | str | None = None,
        journal: _journal.LoadJournal | None = None,
    ) -> SkillCorpus:
        """Build a corpus from Settings; ``root`` overrides corpus.root."""
        return cls(
            root if root is not None else settings.corpus.root,
            corpus_loader=loader.CorpusLoader.from_settings(settings, journal=journal),
            known_categories=settings.corpus.categories,
            placeholder_titles=settings.validation.placeholder_titles,
            check_references=settings.validation.check_references,
            summary_max_chars=settings.display.summary_max_chars,
        )

    def _ensure_loaded(self) -> loader.LoadResult:
        """Ensure the corpus has been loaded."""
        if self._result is None:
            self._result = self._loader.load_all(self._root)
            self._index = index_module.SkillIndex(self._result)
        return self._result

    def reload(self) -> loader.LoadResult:
        """Force a fresh load from disk."""
        self._result = None
        self._index = None
        return self._ensure_loaded()

    @property
    def root(self) -> _pathlib.Path:
        return self._root

    @property
    def result(self) -> loader.LoadResult:
        """The underlying LoadResult (loads on first access)."""
        return self._ensure_loaded()

    @property
    def index(self) -> index_module.SkillIndex:
        self._ensure_loaded()
        assert self._index is not None
        return self._index

    # Listing
    def documents(self) -> list[document.SkillDocument]:
        return list(self._ensure_loaded())

    def list_documents(self, category: str | None = None) -> list[document.SkillDocument]:
        """
        List documents, optionally restricted to one category.

        Returns:
            Documents in load order.
        """
        if category is None:
            return self.documents()
        return self.query(category=category).to_list()

    def categories(self) -> dict[str, int]:
        """Category name to document count, sorted by name."""
        counts: dict[str, int] = {}
        for doc in self._ensure_loaded():
            counts[doc.category] = counts.get(doc.category, 0) + 1
        return dict(sorted(counts.items()))

    def get(self, name: str) -> document.SkillDocument | None:
        """
        Get a document by ref, slug or title.

        Returns:
            SkillDocument or None if not found.
        """
        return self.index.resolve(name)

    def __contains__(self, name: object) -> bool:
        return name in self.index

    def __len__(self) -> int:
        return len(self._ensure_loaded())

    # Search and query
    def query(
        self,
        predicate: query_module.Predicate | None = None,
        **criteria: _typing.Any,
    ) -> query_module.QueryResult:
        """Select documents; see skillcorpus.skills.query.query."""
        return query_module.query(self._ensure_loaded(), predicate, **criteria)

    def search(self, text: str, category: str | None = None) -> list[dict[str, _typing.Any]]:
        """
        Find skills whose title, slug, summary or tags contain every word.

        Returns:
            Summary dicts with the summary truncated for display.
        """
        return self.summaries(self.query(text=text, category=category))

    def summaries(
        self,
        documents: _typing.Iterable[document.SkillDocument] | None = None,
    ) -> list[dict[str, _typing.Any]]:
        """Listing form of the given documents (default: all)."""
        docs = self._ensure_loaded() if documents is None else documents
        return [doc.to_summary_dict(self._summary_max_chars) for doc in docs]

    def sharp_edges(
        self,
        skill: str | None = None,
        *,
        severity: document.Severity | str | None = None,
        at_least: bool = False,
    ) -> list[tuple[document.SkillDocument, document.SharpEdge]]:
        """
        Sharp edges across the corpus or for one skill.

        Args:
            skill: Restrict to the document this name resolves to.
            severity: Keep only edges of this severity.
            at_least: With severity, also keep more severe edges.

        Raises:
            KeyError: If ``skill`` does not resolve to a document.
            ValueError: If a string severity is not recognized.
        """
        if skill is not None:
            found = self.get(skill)
            if found is None:
                raise KeyError(skill)
            docs: list[document.SkillDocument] = [found]
        else:
            docs = self.documents()

        wanted = query_module.coerce_severity(severity) if severity is not None else None

        edges: list[tuple[document.SkillDocument, document.SharpEdge]] = []
        for doc in docs:
            for edge in doc.sharp_edges:
                if wanted is not None:
                    if at_least and not edge.severity.at_least(wanted):
                        continue
                    if not at_least and edge.severity is not wanted:
                        continue
                edges.append((doc, edge))
        return edges

    # Validation and graph
    def validate(self) -> list[validation.ValidationIssue]:
        """Validate every document, resolving references within the corpus."""
        result = self._ensure_loaded()
        issues: list[validation.ValidationIssue] = []
        lookup = self.index if self._check_references else None
        for doc in result:
            issues.extend(
                validation.validate(
                    doc,
                    index=lookup,
                    known_categories=self._known_categories,
                    placeholder_titles=self._placeholder_titles,
                )
            )
        return issues

    def handoff_graph(self, *, include_receives_from: bool = True) -> graph_module.HandoffGraph:
        return graph_module.resolve_handoff_graph(
            self._ensure_loaded(),
            index=self.index,
            include_receives_from=include_receives_from,
        )

    # Serialization
    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        result = self._ensure_loaded()
        return {
            "root": str(self._root),
            "skill_count": len(result),
            "categories": self.categories(),
            "skills": self.summaries(),
            "failures": [f.to_dict() for f in result.failures],
        }
