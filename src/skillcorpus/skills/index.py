"""
Name resolution for cross-document references.

Documents refer to each other by human-readable names ("LLM Architect",
"llm-architect", "ai/llm-architect"). References are stored as strings
on the document and looked up here on demand.
"""

from __future__ import annotations

import logging as _logging
import typing as _typing

import skillcorpus.skills.document as document
import skillcorpus.utils.markdown as markdown

_logger = _logging.getLogger(__name__)


class SkillIndex:
    """
    Lookup table from reference names to documents.

    A name resolves, in order, by:
    1. Qualified reference '<category>/<slug>'
    2. Slug
    3. Slugified title

    When several documents share a key the first one in load order wins.
    """

    def __init__(self, documents: _typing.Iterable[document.SkillDocument]) -> None:
        self._documents: list[document.SkillDocument] = list(documents)
        self._by_ref: dict[str, document.SkillDocument] = {}
        self._by_slug: dict[str, document.SkillDocument] = {}
        self._by_title: dict[str, document.SkillDocument] = {}

        for doc in self._documents:
            if doc.ref in self._by_ref:
                _logger.warning(
                    "Skill ref %s is used by %s and %s; keeping the first",
                    doc.ref,
                    self._by_ref[doc.ref].path,
                    doc.path,
                )
            self._by_ref.setdefault(doc.ref, doc)
            self._by_slug.setdefault(doc.slug, doc)
            title_key = markdown.slugify(doc.title)
            if title_key:
                self._by_title.setdefault(title_key, doc)

    def resolve(self, name: str) -> document.SkillDocument | None:
        """Find the document a reference name points at, or None."""
        key = markdown.strip_inline_markup(name).strip()
        if not key:
            return None
        if key in self._by_ref:
            return self._by_ref[key]
        if "/" in key:
            category, _, slug = key.partition("/")
            found = self._by_ref.get(f"{markdown.slugify(category)}/{markdown.slugify(slug)}")
            if found is not None:
                return found
        slug = markdown.slugify(key)
        return self._by_slug.get(slug) or self._by_title.get(slug)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> _typing.Iterator[document.SkillDocument]:
        return iter(self._documents)

    @property
    def refs(self) -> list[str]:
        """All qualified references, in load order."""
        return list(self._by_ref)
