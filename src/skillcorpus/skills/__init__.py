"""
Skill document corpus.

A corpus is a directory tree of Markdown skill documents, one per file,
grouped into category directories. This package provides:
- A tolerant parser for the skill document layout
- Parallel loading of a whole corpus
- Validation, composable queries and the hand-off graph
- Rendering documents back to the canonical layout

Corpus layout:
    <root>/<category>/<skill>.md
    <root>/<category>/<skill>/SKILL.md
"""

from skillcorpus.skills.corpus import SkillCorpus
from skillcorpus.skills.discovery import category_for_path, iter_skill_files
from skillcorpus.skills.document import (
    AntiPattern,
    CodeBlock,
    HandoffTrigger,
    ParseWarning,
    Pattern,
    ReceivesFrom,
    Severity,
    SharpEdge,
    SkillDocument,
    SkillMetadata,
)
from skillcorpus.skills.graph import HandoffGraph, RelationType, resolve_handoff_graph
from skillcorpus.skills.index import SkillIndex
from skillcorpus.skills.loader import (
    CorpusLoader,
    DuplicateDocumentError,
    FileFailure,
    IOFailure,
    LoadResult,
    load_all,
)
from skillcorpus.skills.parser import parse_skill_file, parse_skill_markdown
from skillcorpus.skills.query import (
    Predicate,
    QueryResult,
    has_severity,
    has_tag,
    in_category,
    matches_text,
    query,
)
from skillcorpus.skills.render import export_corpus, render_skill_markdown
from skillcorpus.skills.validation import (
    IssueLevel,
    UnresolvedReferenceWarning,
    ValidationIssue,
    validate,
    validate_all,
)

__all__ = [
    # Data model
    "AntiPattern",
    "CodeBlock",
    "HandoffTrigger",
    "ParseWarning",
    "Pattern",
    "ReceivesFrom",
    "Severity",
    "SharpEdge",
    "SkillDocument",
    "SkillMetadata",
    # Parsing and loading
    "parse_skill_file",
    "parse_skill_markdown",
    "category_for_path",
    "iter_skill_files",
    "CorpusLoader",
    "DuplicateDocumentError",
    "FileFailure",
    "IOFailure",
    "LoadResult",
    "load_all",
    # Resolution, validation and graph
    "SkillIndex",
    "IssueLevel",
    "UnresolvedReferenceWarning",
    "ValidationIssue",
    "validate",
    "validate_all",
    "HandoffGraph",
    "RelationType",
    "resolve_handoff_graph",
    # Query
    "Predicate",
    "QueryResult",
    "has_severity",
    "has_tag",
    "in_category",
    "matches_text",
    "query",
    # Rendering
    "export_corpus",
    "render_skill_markdown",
    # Facade
    "SkillCorpus",
]
