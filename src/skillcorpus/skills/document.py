"""
Skill document data model.

A skill document is one Markdown file describing a domain: identity text,
expertise areas, patterns, anti-patterns, sharp edges (production gotchas
with a severity) and collaboration hand-offs to other skills.

All records are frozen so a loaded corpus can be shared between threads
and compared structurally (two loads of an unchanged tree are equal).
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic

import skillcorpus.utils.markdown as markdown


class Severity(_enum.Enum):
    """
    Impact of a sharp edge.

    CRITICAL through LOW form the closed set used by skill authors.
    UNKNOWN is the sentinel for headings whose severity could not be
    recognized; it is never produced silently (the parser records a
    ParseWarning whenever it falls back to it).
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Ordering key: CRITICAL=4 down to LOW=1, UNKNOWN=0."""
        return _SEVERITY_RANKS[self]

    @property
    def label(self) -> str:
        """Heading form, e.g. 'CRITICAL'."""
        return self.name

    def at_least(self, other: Severity) -> bool:
        """Whether this severity is as severe as ``other`` or more."""
        return self.rank >= other.rank

    @classmethod
    def parse(cls, raw: str) -> Severity | None:
        """
        Map a severity string to exactly one known value.

        Accepts any case, surrounding whitespace and optional brackets
        ("[HIGH]", "high", " High "). Returns None for anything that is not
        one of CRITICAL/HIGH/MEDIUM/LOW, including the literal "unknown".
        """
        value = raw.strip().strip("[]").strip().lower()
        for member in (cls.CRITICAL, cls.HIGH, cls.MEDIUM, cls.LOW):
            if member.value == value:
                return member
        return None


_SEVERITY_RANKS = {
    Severity.CRITICAL: 4,
    Severity.HIGH: 3,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.UNKNOWN: 0,
}


@_dataclasses.dataclass(frozen=True)
class ParseWarning:
    """A recoverable problem found while parsing a document."""

    code: str
    """Stable machine-readable code (e.g. 'missing-section')."""

    message: str
    """Human-readable description."""

    line: int | None = None
    """1-indexed line number, when the problem has a location."""

    section: str | None = None
    """Heading of the section the problem was found in."""

    path: _pathlib.Path | None = None
    """File the warning belongs to."""

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "line": self.line,
            "section": self.section,
            "path": str(self.path) if self.path else None,
        }


class SkillMetadata(_pydantic.BaseModel):
    """
    Metadata header parsed from the lines under the title.

    Parsed from:
        **Category:** agents | **Version:** 1.0.0
        **Tags:** memory, retrieval, rag
    """

    model_config = _pydantic.ConfigDict(frozen=True, extra="allow")

    declared_category: str | None = _pydantic.Field(
        default=None,
        description="Category as written in the document",
    )

    version: str = _pydantic.Field(
        default="",
        description="Version string as written (not enforced)",
    )

    tags: frozenset[str] = _pydantic.Field(
        default_factory=frozenset,
        description="Tags; insertion order is irrelevant",
    )

    @_pydantic.field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: _typing.Any) -> _typing.Any:
        """Accept a comma-separated string as well as any iterable."""
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(
                cleaned for cleaned in (markdown.strip_inline_markup(str(t)) for t in value) if cleaned
            )
        return value


@_dataclasses.dataclass(frozen=True)
class CodeBlock:
    """A fenced code block extracted from solution text."""

    language: str | None
    content: str


@_dataclasses.dataclass(frozen=True)
class Pattern:
    """A recommended approach (### heading under ## Patterns)."""

    name: str
    description: str = ""
    when_to_use: str | None = None

    def to_dict(self) -> dict[str, _typing.Any]:
        return _dataclasses.asdict(self)


@_dataclasses.dataclass(frozen=True)
class AntiPattern:
    """An approach to avoid (### heading under ## Anti-Patterns)."""

    name: str
    description: str = ""
    instead_advice: str | None = None
    why_bad: str | None = None

    def to_dict(self) -> dict[str, _typing.Any]:
        return _dataclasses.asdict(self)


@_dataclasses.dataclass(frozen=True)
class SharpEdge:
    """
    A documented production gotcha.

    Heading form is ``### [<SEVERITY>] <title>``. The title is kept exactly
    as written, including placeholder artifacts such as the literal
    "undefined" emitted by a template that rendered a missing field.
    """

    severity: Severity
    title: str
    situation: str = ""
    why_it_happens: str = ""
    solution_text: str = ""
    """Free text; fenced code inside it is opaque."""

    symptoms: tuple[str, ...] = ()
    raw_severity: str | None = None
    """Severity string as written, when it was not recognized."""

    line: int | None = None
    """Line of the ### heading."""

    @property
    def code_blocks(self) -> list[CodeBlock]:
        """Fenced code blocks embedded in the solution text."""
        return [
            CodeBlock(language=language, content=content)
            for language, content in markdown.iter_code_blocks(self.solution_text)
        ]

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "title": self.title,
            "situation": self.situation,
            "why_it_happens": self.why_it_happens,
            "solution_text": self.solution_text,
            "symptoms": list(self.symptoms),
            "raw_severity": self.raw_severity,
            "line": self.line,
        }


@_dataclasses.dataclass(frozen=True)
class HandoffTrigger:
    """One row of the 'When to Hand Off' table."""

    trigger: str
    delegate_to: str
    """Name of another skill document (title or slug), resolved lazily."""

    context: str = ""

    def to_dict(self) -> dict[str, _typing.Any]:
        return _dataclasses.asdict(self)


@_dataclasses.dataclass(frozen=True)
class ReceivesFrom:
    """One entry of the 'Receives Work From' list."""

    skill: str
    context: str = ""

    def to_dict(self) -> dict[str, _typing.Any]:
        return _dataclasses.asdict(self)


@_dataclasses.dataclass(frozen=True)
class SkillDocument:
    """
    A parsed skill document.

    Fields that the source file lacks default to empty values; the reasons
    are recorded in ``parse_warnings`` rather than raised.
    """

    title: str
    """Text of the '# ' heading. Empty if the file has none."""

    summary: str
    """Blockquote text directly under the title."""

    category: str
    """Category the document belongs to (its top-level directory)."""

    slug: str
    """Stable identifier derived from the file name."""

    metadata: SkillMetadata = _dataclasses.field(default_factory=SkillMetadata)
    path: _pathlib.Path | None = None
    identity: str | None = None
    expertise_areas: tuple[str, ...] = ()
    patterns: tuple[Pattern, ...] = ()
    anti_patterns: tuple[AntiPattern, ...] = ()
    sharp_edges: tuple[SharpEdge, ...] = ()
    collaboration: tuple[HandoffTrigger, ...] = ()
    receives_from: tuple[ReceivesFrom, ...] = ()
    works_well_with: tuple[str, ...] = ()
    decisions: str | None = None
    extra_sections: tuple[tuple[str, str], ...] = ()
    """Unrecognized ## sections as (heading, text) pairs, in file order."""

    parse_warnings: tuple[ParseWarning, ...] = ()

    @property
    def version(self) -> str:
        """Version from the metadata line."""
        return self.metadata.version

    @property
    def tags(self) -> frozenset[str]:
        """Tags from the metadata line."""
        return self.metadata.tags

    @property
    def declared_category(self) -> str | None:
        """Category as written in the document (may differ from directory)."""
        return self.metadata.declared_category

    @property
    def ref(self) -> str:
        """Qualified reference, unique within a corpus: '<category>/<slug>'."""
        return f"{self.category}/{self.slug}"

    @property
    def max_severity(self) -> Severity | None:
        """Most severe sharp edge, or None if there are none."""
        if not self.sharp_edges:
            return None
        return max((e.severity for e in self.sharp_edges), key=lambda s: s.rank)

    @property
    def has_warnings(self) -> bool:
        return bool(self.parse_warnings)

    def references(self) -> list[tuple[str, str]]:
        """
        Names of other skills this document points at.

        Returns:
            List of (relation, name) tuples in document order. Relation is
            'delegates_to', 'works_well_with' or 'receives_from'.
        """
        refs: list[tuple[str, str]] = []
        refs.extend(("delegates_to", t.delegate_to) for t in self.collaboration)
        refs.extend(("works_well_with", name) for name in self.works_well_with)
        refs.extend(("receives_from", r.skill) for r in self.receives_from)
        return refs

    def to_summary_dict(self, max_chars: int = 200) -> dict[str, _typing.Any]:
        """Lightweight listing form with the summary truncated."""
        summary = self.summary
        if len(summary) > max_chars:
            summary = summary[:max_chars] + "..."
        return {
            "ref": self.ref,
            "slug": self.slug,
            "title": self.title,
            "category": self.category,
            "summary": summary,
        }

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ref": self.ref,
            "slug": self.slug,
            "title": self.title,
            "summary": self.summary,
            "category": self.category,
            "declared_category": self.declared_category,
            "version": self.version,
            "tags": sorted(self.tags),
            "path": str(self.path) if self.path else None,
            "identity": self.identity,
            "expertise_areas": list(self.expertise_areas),
            "patterns": [p.to_dict() for p in self.patterns],
            "anti_patterns": [a.to_dict() for a in self.anti_patterns],
            "sharp_edges": [e.to_dict() for e in self.sharp_edges],
            "collaboration": [t.to_dict() for t in self.collaboration],
            "receives_from": [r.to_dict() for r in self.receives_from],
            "works_well_with": list(self.works_well_with),
            "decisions": self.decisions,
            "extra_sections": dict(self.extra_sections),
            "parse_warnings": [w.to_dict() for w in self.parse_warnings],
        }
