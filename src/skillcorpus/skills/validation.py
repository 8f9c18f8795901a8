"""
Skill document validation.

Checks the invariants a well-formed corpus holds. Validation never raises
for a bad document; every finding is returned as a ValidationIssue so
callers can decide what is fatal.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import pathlib as _pathlib
import re as _re
import typing as _typing

import skillcorpus.constants as constants
import skillcorpus.skills.document as document
import skillcorpus.skills.index as index_module

_logger = _logging.getLogger(__name__)

# Loose semver: 1.0, 1.0.0, v2.1.3, 1.0.0-beta.1
_VERSION_RE = _re.compile(r"^v?\d+\.\d+(?:\.\d+)?(?:[-+][0-9A-Za-z.-]+)?$")


class IssueLevel(_enum.Enum):
    """How serious a validation issue is."""

    ERROR = "error"
    WARNING = "warning"


@_dataclasses.dataclass(frozen=True)
class ValidationIssue:
    """A single finding from validation."""

    code: str
    message: str
    level: IssueLevel = IssueLevel.WARNING
    document: str = ""
    """Ref ('<category>/<slug>') of the document the issue belongs to."""

    path: _pathlib.Path | None = None

    @property
    def is_error(self) -> bool:
        return self.level is IssueLevel.ERROR

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "level": self.level.value,
            "message": self.message,
            "document": self.document,
            "path": str(self.path) if self.path else None,
        }


@_dataclasses.dataclass(frozen=True)
class UnresolvedReferenceWarning(ValidationIssue):
    """
    A reference to another skill that matches no loaded document.

    Always a warning: cross-file references in a document corpus are loose,
    and the edge is still kept in the hand-off graph.
    """

    target: str = ""
    relation: str = ""

    def to_dict(self) -> dict[str, _typing.Any]:
        result = super().to_dict()
        result["target"] = self.target
        result["relation"] = self.relation
        return result


def unresolved_reference(
    doc: document.SkillDocument,
    relation: str,
    target: str,
) -> UnresolvedReferenceWarning:
    """Build the warning for one reference that did not resolve."""
    return UnresolvedReferenceWarning(
        code="unresolved-reference",
        message=f"'{target}' ({relation}) does not match any loaded skill",
        level=IssueLevel.WARNING,
        document=doc.ref,
        path=doc.path,
        target=target,
        relation=relation,
    )


def validate(
    doc: document.SkillDocument,
    *,
    index: index_module.SkillIndex | None = None,
    known_categories: _typing.Iterable[str] | None = None,
    placeholder_titles: _typing.Iterable[str] = constants.PLACEHOLDER_TITLES,
) -> list[ValidationIssue]:
    """
    Check one document.

    Args:
        doc: Document to check.
        index: If given, references to other skills are resolved against
               it and unresolved ones are reported.
        known_categories: Accepted categories (default: KNOWN_CATEGORIES).
        placeholder_titles: Sharp-edge titles flagged as template artifacts
                            (compared case-insensitively).

    Returns:
        List of issues in document order; empty for a well-formed document.
    """
    issues: list[ValidationIssue] = []
    categories = set(known_categories if known_categories is not None else constants.KNOWN_CATEGORIES)
    placeholders = {p.casefold() for p in placeholder_titles}

    def add(code: str, message: str, level: IssueLevel = IssueLevel.WARNING) -> None:
        issues.append(
            ValidationIssue(
                code=code,
                message=message,
                level=level,
                document=doc.ref,
                path=doc.path,
            )
        )

    if not doc.title.strip():
        add("empty-title", "Document has no title", IssueLevel.ERROR)

    if doc.category not in categories:
        add(
            "unknown-category",
            f"Category '{doc.category}' is not one of: {', '.join(sorted(categories))}",
            IssueLevel.ERROR,
        )

    declared = doc.declared_category
    if declared and declared.strip().casefold() != doc.category.casefold():
        add(
            "category-mismatch",
            f"Declared category '{declared}' differs from directory '{doc.category}'",
        )

    if not doc.version:
        add("invalid-version", "No version declared")
    elif not _VERSION_RE.match(doc.version):
        add("invalid-version", f"Version '{doc.version}' is not a semantic version")

    for edge in doc.sharp_edges:
        if edge.severity is document.Severity.UNKNOWN:
            raw = edge.raw_severity if edge.raw_severity is not None else ""
            add(
                "unknown-severity",
                f"Sharp edge '{edge.title}' has unrecognized severity '{raw}'",
                IssueLevel.ERROR,
            )
        title = edge.title.strip()
        if not title:
            add("empty-edge-title", f"A {edge.severity.label} sharp edge has no title")
        elif title.casefold() in placeholders:
            add(
                "placeholder-title",
                f"Sharp edge title '{title}' looks like an unfilled template field",
            )

    if index is not None:
        for relation, target in doc.references():
            if index.resolve(target) is None:
                issues.append(unresolved_reference(doc, relation, target))

    return issues


def validate_all(
    documents: _typing.Iterable[document.SkillDocument],
    *,
    check_references: bool = True,
    **kwargs: _typing.Any,
) -> list[ValidationIssue]:
    """
    Check every document of a corpus.

    References are resolved against the documents themselves when
    ``check_references`` is true.
    """
    docs = list(documents)
    index = index_module.SkillIndex(docs) if check_references else None
    issues: list[ValidationIssue] = []
    for doc in docs:
        issues.extend(validate(doc, index=index, **kwargs))

    errors = sum(1 for issue in issues if issue.is_error)
    _logger.info(
        "Validated %d skills: %d errors, %d warnings",
        len(docs),
        errors,
        len(issues) - errors,
    )
    return issues
