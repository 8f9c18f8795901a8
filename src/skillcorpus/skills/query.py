"""
Query surface over loaded skill documents.

Predicates compose with ``&``, ``|`` and ``~``:

    critical_rag = skills.has_tag("rag") & skills.has_severity(
        skills.Severity.HIGH, at_least=True
    )
    for doc in skills.query(result, critical_rag):
        ...

A QueryResult is lazy and re-iterable: every iteration filters the backing
documents again, so it can be consumed more than once.
"""

from __future__ import annotations

import typing as _typing

import skillcorpus.skills.document as document


class Predicate:
    """A named, composable test on a SkillDocument."""

    def __init__(
        self,
        test: _typing.Callable[[document.SkillDocument], bool],
        description: str = "",
    ) -> None:
        self._test = test
        self._description = description or getattr(test, "__name__", "predicate")

    def __call__(self, doc: document.SkillDocument) -> bool:
        return bool(self._test(doc))

    def __and__(self, other: Predicate) -> Predicate:
        return Predicate(
            lambda doc: self(doc) and other(doc),
            f"({self._description} and {other._description})",
        )

    def __or__(self, other: Predicate) -> Predicate:
        return Predicate(
            lambda doc: self(doc) or other(doc),
            f"({self._description} or {other._description})",
        )

    def __invert__(self) -> Predicate:
        return Predicate(lambda doc: not self(doc), f"not {self._description}")

    def __repr__(self) -> str:
        return f"Predicate({self._description})"


def always() -> Predicate:
    """Predicate that matches every document."""
    return Predicate(lambda doc: True, "always")


def has_tag(tag: str) -> Predicate:
    """Document carries the tag (case-insensitive)."""
    wanted = tag.strip().casefold()
    return Predicate(
        lambda doc: any(t.casefold() == wanted for t in doc.tags),
        f"has_tag({tag!r})",
    )


def in_category(category: str) -> Predicate:
    """Document belongs to the category (its directory)."""
    wanted = category.strip().casefold()
    return Predicate(
        lambda doc: doc.category.casefold() == wanted,
        f"in_category({category!r})",
    )


def coerce_severity(severity: document.Severity | str) -> document.Severity:
    """
    Accept a Severity or its name.

    The name "unknown" selects the UNKNOWN sentinel.

    Raises:
        ValueError: If a string severity is not recognized.
    """
    if isinstance(severity, document.Severity):
        return severity
    parsed = document.Severity.parse(severity)
    if parsed is not None:
        return parsed
    if severity.strip().strip("[]").strip().lower() == document.Severity.UNKNOWN.value:
        return document.Severity.UNKNOWN
    raise ValueError(f"Unknown severity: {severity!r}")


def has_severity(
    severity: document.Severity | str,
    *,
    at_least: bool = False,
) -> Predicate:
    """
    Document has a sharp edge of the given severity.

    Args:
        severity: Severity or its name ("high", "[HIGH]").
        at_least: Match edges of this severity or anything more severe.

    Raises:
        ValueError: If a string severity is not recognized.
    """
    target = coerce_severity(severity)
    if at_least:
        return Predicate(
            lambda doc: any(e.severity.at_least(target) for e in doc.sharp_edges),
            f"has_severity(>={target.label})",
        )
    return Predicate(
        lambda doc: any(e.severity is target for e in doc.sharp_edges),
        f"has_severity({target.label})",
    )


def matches_text(text: str) -> Predicate:
    """
    Every word of ``text`` occurs in the title, slug, summary or tags.

    Matching is case-insensitive substring matching per word. An empty
    query matches everything.
    """
    words = text.casefold().split()

    def test(doc: document.SkillDocument) -> bool:
        haystack = " ".join(
            [doc.title, doc.slug, doc.summary, " ".join(sorted(doc.tags))]
        ).casefold()
        return all(word in haystack for word in words)

    return Predicate(test, f"matches_text({text!r})")


class QueryResult:
    """Lazy, re-iterable view of the documents matching a predicate."""

    def __init__(
        self,
        documents: _typing.Iterable[document.SkillDocument],
        predicate: Predicate | None = None,
    ) -> None:
        self._documents = tuple(documents)
        self._predicate = predicate or always()

    def __iter__(self) -> _typing.Iterator[document.SkillDocument]:
        return (doc for doc in self._documents if self._predicate(doc))

    def __bool__(self) -> bool:
        return self.first() is not None

    def __repr__(self) -> str:
        return f"QueryResult({self._predicate!r})"

    def where(self, predicate: Predicate) -> QueryResult:
        """Narrow the result with another predicate."""
        return QueryResult(self._documents, self._predicate & predicate)

    def first(self) -> document.SkillDocument | None:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)

    def to_list(self) -> list[document.SkillDocument]:
        return list(self)


def query(
    documents: _typing.Iterable[document.SkillDocument],
    predicate: Predicate | None = None,
    *,
    tag: str | None = None,
    category: str | None = None,
    severity: document.Severity | str | None = None,
    at_least: bool = False,
    text: str | None = None,
) -> QueryResult:
    """
    Select documents.

    Keyword criteria are shorthands for the matching predicates and are
    combined with ``predicate`` using AND.

    Args:
        documents: Documents to select from (e.g. a LoadResult).
        predicate: Composed predicate.
        tag: Shorthand for has_tag(tag).
        category: Shorthand for in_category(category).
        severity: Shorthand for has_severity(severity, at_least=at_least).
        at_least: See has_severity.
        text: Shorthand for matches_text(text).

    Returns:
        Lazy QueryResult in the documents' order.
    """
    combined = predicate
    criteria: list[Predicate] = []
    if tag is not None:
        criteria.append(has_tag(tag))
    if category is not None:
        criteria.append(in_category(category))
    if severity is not None:
        criteria.append(has_severity(severity, at_least=at_least))
    if text is not None:
        criteria.append(matches_text(text))

    for criterion in criteria:
        combined = criterion if combined is None else combined & criterion

    return QueryResult(documents, combined)
