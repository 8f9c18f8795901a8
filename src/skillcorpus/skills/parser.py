"""
Skill document parsing.

Skill documents are free-text Markdown with conventional headings. The
parser is line oriented and tolerant: a '## ' heading starts a section that
runs until the next '## ' heading, '### ' headings split a section into
entries, and '**Label:**' lines split an entry into fields. Lines inside
fenced code blocks are never interpreted.

Nothing in here raises on malformed input. Missing or unreadable pieces
leave the corresponding field empty and add a ParseWarning to the document.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import pathlib as _pathlib
import re as _re
import typing as _typing

import skillcorpus.constants as constants
import skillcorpus.skills.document as document
import skillcorpus.utils.markdown as markdown

_logger = _logging.getLogger(__name__)

# Recognized ## sections (literal, case-sensitive)
SECTION_IDENTITY = "Identity"
SECTION_EXPERTISE = "Expertise Areas"
SECTION_PATTERNS = "Patterns"
SECTION_ANTI_PATTERNS = "Anti-Patterns"
SECTION_SHARP_EDGES = "Sharp Edges (Gotchas)"
SECTION_COLLABORATION = "Collaboration"
SECTION_DECISIONS = "Decision Framework"

REQUIRED_SECTIONS: tuple[str, ...] = (SECTION_PATTERNS, SECTION_SHARP_EDGES)
"""Sections whose absence marks a document as malformed."""

# Recognized ### subsections
SUBSECTION_HANDOFF = "When to Hand Off"
SUBSECTION_RECEIVES = "Receives Work From"
SUBSECTION_WORKS_WELL_WITH = "Works Well With"

# Field labels (compared case-insensitively)
LABEL_WHEN = "when"
LABEL_INSTEAD = "instead"
LABEL_WHY_BAD = "why it's bad"
LABEL_SITUATION = "situation"
LABEL_WHY = "why it happens"
LABEL_SOLUTION = "solution"
LABEL_SYMPTOMS = "symptoms"

_EDGE_LABELS = (LABEL_SITUATION, LABEL_WHY, LABEL_SOLUTION, LABEL_SYMPTOMS)

_TITLE_RE = _re.compile(r"^# (?P<title>.*\S)\s*$")
_SECTION_RE = _re.compile(r"^## (?P<heading>.*\S)\s*$")
_SUBSECTION_RE = _re.compile(r"^### (?P<heading>.*\S)\s*$")
_EDGE_HEADING_RE = _re.compile(r"^\[(?P<severity>[^\]]*)\]\s*(?P<title>.*)$")
_LABEL_RE = _re.compile(r"^\*\*(?P<label>[^*]+?):\*\*\s*(?P<rest>.*)$")
_CATEGORY_RE = _re.compile(r"\*\*Category:\*\*\s*(?P<value>[^|]*)")
_VERSION_RE = _re.compile(r"\*\*Version:\*\*\s*(?P<value>[^|]*)")
_TAGS_RE = _re.compile(r"^\*\*Tags:\*\*\s*(?P<value>.*)$")
_BULLET_RE = _re.compile(r"^\s*[-*+]\s+(?P<item>.*\S)\s*$")
_RECEIVES_RE = _re.compile(r"^\*\*(?P<skill>[^*]+)\*\*\s*:?\s*(?P<context>.*)$")
_SEPARATOR_RE = _re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$")
_QUOTE_RE = _re.compile(r"^\s*>\s?")

# A line of the source with its 1-indexed line number
_Line = tuple[int, str]


@_dataclasses.dataclass
class _Block:
    """A heading and the lines under it, up to the next heading of its level."""

    heading: str
    line: int
    body: list[_Line]


def _split_blocks(
    lines: list[_Line],
    heading_re: _re.Pattern[str],
) -> tuple[list[_Line], list[_Block]]:
    """
    Split lines at headings matched by ``heading_re``.

    Returns:
        Tuple of (lines before the first heading, blocks).
    """
    fences = markdown.FenceTracker()
    lead: list[_Line] = []
    blocks: list[_Block] = []
    current: _Block | None = None

    for lineno, text in lines:
        if not fences.feed(text):
            match = heading_re.match(text)
            if match:
                current = _Block(match.group("heading").strip(), lineno, [])
                blocks.append(current)
                continue
        (current.body if current is not None else lead).append((lineno, text))

    return lead, blocks


def _split_labeled(
    lines: list[_Line],
    known: _typing.Collection[str],
    *,
    list_labels: _typing.Collection[str] = (),
    fold_into_lead: bool = False,
) -> tuple[list[_Line], dict[str, list[_Line]]]:
    """
    Split an entry body at '**Label:**' lines.

    Only labels in ``known`` start a block; text on the label line after the
    label belongs to that block. Any other label line is kept verbatim, label
    included, together with the lines under it. It goes to the lead when
    ``fold_into_lead`` is set, otherwise to the most recent block that holds
    prose (labels in ``list_labels`` hold bullets and are skipped).

    Returns:
        Tuple of (lines before the first known label, label -> lines).
        Labels are casefolded; a repeated label appends to the same block.
    """
    fences = markdown.FenceTracker()
    lead: list[_Line] = []
    blocks: dict[str, list[_Line]] = {}
    current = lead
    prose = lead

    for lineno, text in lines:
        if not fences.feed(text):
            match = _LABEL_RE.match(text.strip())
            if match:
                label = match.group("label").strip().casefold()
                if label in known:
                    current = blocks.setdefault(label, [])
                    if label not in list_labels and not fold_into_lead:
                        prose = current
                    rest = match.group("rest").strip()
                    if rest:
                        current.append((lineno, rest))
                    continue
                current = prose
        current.append((lineno, text))

    return lead, blocks


def _text(lines: list[_Line]) -> str:
    """Join lines, trimming blank and '---' separator lines at both ends."""
    texts = [text.rstrip() for _, text in lines]
    while texts and (not texts[-1].strip() or _SEPARATOR_RE.match(texts[-1])):
        texts.pop()
    while texts and (not texts[0].strip() or _SEPARATOR_RE.match(texts[0])):
        texts.pop(0)
    return "\n".join(texts).strip()


def _bullets(lines: list[_Line]) -> list[str]:
    """Bullet items outside code fences, in order."""
    fences = markdown.FenceTracker()
    items: list[str] = []
    for _, text in lines:
        if fences.feed(text):
            continue
        match = _BULLET_RE.match(text)
        if match:
            items.append(match.group("item"))
    return items


def _is_placeholder_only(lines: list[_Line]) -> bool:
    """Whether the text is empty or only italic notes like '*See full version.*'."""
    for _, text in lines:
        stripped = text.strip()
        if not stripped or _SEPARATOR_RE.match(stripped):
            continue
        if not (stripped.startswith("*") and stripped.endswith("*")) or _BULLET_RE.match(stripped):
            return False
    return True


class _DocumentParser:
    """Single-use parser state for one document."""

    def __init__(self, path: _pathlib.Path | None) -> None:
        self._path = path
        self._warnings: list[document.ParseWarning] = []
        self._works_well_with: list[str] = []

    def warn(
        self,
        code: str,
        message: str,
        *,
        line: int | None = None,
        section: str | None = None,
    ) -> None:
        self._warnings.append(
            document.ParseWarning(
                code=code,
                message=message,
                line=line,
                section=section,
                path=self._path,
            )
        )

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def parse(
        self,
        content: str,
        *,
        category: str | None,
        slug: str | None,
    ) -> document.SkillDocument:
        lines = list(enumerate(content.lstrip("\ufeff").splitlines(), start=1))
        self._check_fences(lines)
        preamble, sections = _split_blocks(lines, _SECTION_RE)

        title, summary, metadata = self._parse_preamble(preamble)

        fields: dict[str, _typing.Any] = {}
        extra_sections: list[tuple[str, str]] = []
        seen: set[str] = set()

        for section in sections:
            body = self._take_works_well_with(section)

            if section.heading in _SECTION_HANDLERS:
                if section.heading in seen:
                    self.warn(
                        "duplicate-section",
                        f"Section '{section.heading}' appears more than once; later copy ignored",
                        line=section.line,
                        section=section.heading,
                    )
                    continue
                seen.add(section.heading)
                handler = _SECTION_HANDLERS[section.heading]
                fields.update(handler(self, section, body))
            else:
                extra_sections.append((section.heading, _text(body)))

        for required in REQUIRED_SECTIONS:
            if required not in seen:
                self.warn(
                    "missing-section",
                    f"Missing '## {required}' section",
                    section=required,
                )

        resolved_category = category or metadata.declared_category or constants.UNCATEGORIZED
        resolved_slug = (
            slug
            or (markdown.slugify(title) if title else "")
            or (markdown.slugify(self._path.stem) if self._path else "")
            or "untitled"
        )

        return document.SkillDocument(
            title=title,
            summary=summary,
            category=resolved_category,
            slug=resolved_slug,
            metadata=metadata,
            path=self._path,
            works_well_with=tuple(dict.fromkeys(self._works_well_with)),
            extra_sections=tuple(extra_sections),
            parse_warnings=tuple(self._warnings),
            **fields,
        )

    def _check_fences(self, lines: list[_Line]) -> None:
        """Warn when a code fence is never closed, since it hides every heading after it."""
        fences = markdown.FenceTracker()
        opened: int | None = None
        for lineno, text in lines:
            was_inside = fences.inside
            fences.feed(text)
            if fences.inside and not was_inside:
                opened = lineno
        if fences.inside:
            self.warn(
                "unterminated-fence",
                "Code fence is never closed; everything after it is treated as code",
                line=opened,
            )

    # -------------------------------------------------------------------------
    # Header
    # -------------------------------------------------------------------------

    def _parse_preamble(
        self,
        preamble: list[_Line],
    ) -> tuple[str, str, document.SkillMetadata]:
        fences = markdown.FenceTracker()
        visible = [(i, text) for i, text in preamble if not fences.feed(text)]

        title = ""
        title_index: int | None = None
        for index, (_, text) in enumerate(visible):
            match = _TITLE_RE.match(text)
            if match:
                title = match.group("title").strip()
                title_index = index
                break

        if title_index is None:
            self.warn("missing-title", "No '# <Title>' heading found")

        summary = ""
        if title_index is not None:
            summary = self._parse_summary(visible[title_index + 1 :])

        values: dict[str, _typing.Any] = {}
        for _, text in visible:
            if match := _CATEGORY_RE.search(text):
                values["declared_category"] = match.group("value").strip() or None
            if match := _VERSION_RE.search(text):
                values["version"] = match.group("value").strip()
            if match := _TAGS_RE.match(text.strip()):
                values["tags"] = match.group("value")

        if "declared_category" not in values and "version" not in values:
            self.warn(
                "missing-metadata",
                "No '**Category:** ... | **Version:** ...' line found",
            )

        return title, summary, document.SkillMetadata(**values)

    def _parse_summary(self, after_title: list[_Line]) -> str:
        """Blockquote directly after the title, including lazy continuation lines."""
        index = 0
        while index < len(after_title) and not after_title[index][1].strip():
            index += 1

        if index >= len(after_title) or not _QUOTE_RE.match(after_title[index][1]):
            self.warn(
                "missing-summary",
                "No '> summary' blockquote directly under the title",
                line=after_title[index][0] if index < len(after_title) else None,
            )
            return ""

        parts: list[str] = []
        for _, text in after_title[index:]:
            if not text.strip():
                break
            parts.append(_QUOTE_RE.sub("", text, count=1).strip())
        return "\n".join(parts).strip()

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _take_works_well_with(self, section: _Block) -> list[_Line]:
        """
        Collect any '### Works Well With' list out of a section.

        The list is valid under any section, since generated documents place
        it after whichever section happens to come last.

        Returns:
            The section body with that subsection removed.
        """
        lead, subsections = _split_blocks(section.body, _SUBSECTION_RE)
        kept = list(lead)
        for sub in subsections:
            if sub.heading == SUBSECTION_WORKS_WELL_WITH:
                for item in _bullets(sub.body):
                    name = markdown.strip_inline_markup(item)
                    if name:
                        self._works_well_with.append(name)
                continue
            kept.append((sub.line, f"### {sub.heading}"))
            kept.extend(sub.body)
        return kept

    def _parse_identity(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        return {"identity": _text(body) or None}

    def _parse_expertise(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        return {"expertise_areas": tuple(_bullets(body))}

    def _parse_decisions(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        return {"decisions": _text(body) or None}

    def _parse_patterns(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        lead, entries = _split_blocks(body, _SUBSECTION_RE)
        patterns: list[document.Pattern] = []

        for entry in entries:
            entry_lead, labeled = _split_labeled(entry.body, (LABEL_WHEN,), fold_into_lead=True)
            when = _text(labeled.get(LABEL_WHEN, []))
            patterns.append(
                document.Pattern(
                    name=entry.heading,
                    description=_text(entry_lead),
                    when_to_use=when or None,
                )
            )

        if not entries:
            patterns.extend(document.Pattern(name=item) for item in _bullets(lead))

        return {"patterns": tuple(patterns)}

    def _parse_anti_patterns(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        lead, entries = _split_blocks(body, _SUBSECTION_RE)
        anti_patterns: list[document.AntiPattern] = []

        for entry in entries:
            entry_lead, labeled = _split_labeled(
                entry.body,
                (LABEL_INSTEAD, LABEL_WHY_BAD),
                fold_into_lead=True,
            )
            anti_patterns.append(
                document.AntiPattern(
                    name=entry.heading,
                    description=_text(entry_lead),
                    instead_advice=_text(labeled.get(LABEL_INSTEAD, [])) or None,
                    why_bad=_text(labeled.get(LABEL_WHY_BAD, [])) or None,
                )
            )

        if not entries:
            anti_patterns.extend(document.AntiPattern(name=item) for item in _bullets(lead))

        return {"anti_patterns": tuple(anti_patterns)}

    def _parse_sharp_edges(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        lead, entries = _split_blocks(body, _SUBSECTION_RE)

        if not entries and not _is_placeholder_only(lead):
            self.warn(
                "no-entries",
                "Sharp edges section has content but no '### [SEVERITY] title' entries",
                line=section.line,
                section=section.heading,
            )

        return {"sharp_edges": tuple(self._parse_sharp_edge(entry, section) for entry in entries)}

    def _parse_sharp_edge(self, entry: _Block, section: _Block) -> document.SharpEdge:
        raw_severity: str | None = None
        match = _EDGE_HEADING_RE.match(entry.heading)

        if match:
            title = match.group("title").strip()
            parsed = document.Severity.parse(match.group("severity"))
            if parsed is None:
                raw_severity = match.group("severity")
                severity = document.Severity.UNKNOWN
                self.warn(
                    "unknown-severity",
                    f"Unrecognized severity '[{raw_severity}]' in '{entry.heading}'",
                    line=entry.line,
                    section=section.heading,
                )
            else:
                severity = parsed
        else:
            title = entry.heading
            severity = document.Severity.UNKNOWN
            self.warn(
                "missing-severity",
                f"Sharp edge '{entry.heading}' has no [SEVERITY] prefix",
                line=entry.line,
                section=section.heading,
            )

        if not title:
            self.warn(
                "empty-edge-title",
                "Sharp edge heading has no title",
                line=entry.line,
                section=section.heading,
            )
        elif title.casefold() in constants.PLACEHOLDER_TITLES:
            self.warn(
                "placeholder-title",
                f"Sharp edge title is the placeholder '{title}'",
                line=entry.line,
                section=section.heading,
            )

        lead, labeled = _split_labeled(entry.body, _EDGE_LABELS, list_labels=(LABEL_SYMPTOMS,))
        if _text(lead):
            # Sharp edges have no free-text field; keep stray text with the situation
            self.warn(
                "unlabeled-text",
                f"Text before the first field of sharp edge '{title}' kept under Situation",
                line=next(lineno for lineno, text in lead if text.strip()),
                section=section.heading,
            )
            labeled[LABEL_SITUATION] = lead + labeled.get(LABEL_SITUATION, [])
        situation = _text(labeled.get(LABEL_SITUATION, []))
        why = _text(labeled.get(LABEL_WHY, []))
        solution = _text(labeled.get(LABEL_SOLUTION, []))

        missing = [
            name
            for name, value in (("Situation", situation), ("Why it happens", why), ("Solution", solution))
            if not value
        ]
        if missing:
            self.warn(
                "incomplete-edge",
                f"Sharp edge '{title}' is missing: {', '.join(missing)}",
                line=entry.line,
                section=section.heading,
            )

        return document.SharpEdge(
            severity=severity,
            title=title,
            situation=situation,
            why_it_happens=why,
            solution_text=solution,
            symptoms=tuple(_bullets(labeled.get(LABEL_SYMPTOMS, []))),
            raw_severity=raw_severity,
            line=entry.line,
        )

    def _parse_collaboration(self, section: _Block, body: list[_Line]) -> dict[str, _typing.Any]:
        lead, subsections = _split_blocks(body, _SUBSECTION_RE)
        triggers: list[document.HandoffTrigger] = []
        receives: list[document.ReceivesFrom] = []

        # Tolerate a hand-off table written without its ### heading
        triggers.extend(self._parse_handoff_table(lead, section))

        for sub in subsections:
            if sub.heading == SUBSECTION_HANDOFF:
                triggers.extend(self._parse_handoff_table(sub.body, section))
            elif sub.heading == SUBSECTION_RECEIVES:
                receives.extend(self._parse_receives(sub.body))
            else:
                self.warn(
                    "unrecognized-subsection",
                    f"Ignoring '### {sub.heading}' in Collaboration",
                    line=sub.line,
                    section=section.heading,
                )

        return {"collaboration": tuple(triggers), "receives_from": tuple(receives)}

    def _parse_handoff_table(
        self,
        lines: list[_Line],
        section: _Block,
    ) -> list[document.HandoffTrigger]:
        fences = markdown.FenceTracker()
        rows: list[tuple[int, list[str]]] = []
        for lineno, text in lines:
            if fences.feed(text):
                continue
            cells = markdown.split_table_row(text)
            if cells is not None:
                rows.append((lineno, cells))

        if not rows:
            return []

        columns = {"trigger": 0, "delegate": 1, "context": 2}
        start = 0
        if len(rows) > 1 and markdown.is_table_separator(rows[1][1]):
            header = [markdown.slugify(cell) for cell in rows[0][1]]
            columns = {
                key: header.index(name)
                for key, name in (
                    ("trigger", "trigger"),
                    ("delegate", "delegate-to"),
                    ("context", "context"),
                )
                if name in header
            }
            start = 2

        if "delegate" not in columns:
            self.warn(
                "malformed-table",
                "Hand-off table has no 'Delegate To' column",
                line=rows[0][0],
                section=section.heading,
            )
            return []

        def cell(cells: list[str], key: str) -> str:
            index = columns.get(key)
            if index is None or index >= len(cells):
                return ""
            return markdown.strip_inline_markup(cells[index])

        triggers: list[document.HandoffTrigger] = []
        for lineno, cells in rows[start:]:
            if markdown.is_table_separator(cells):
                continue
            delegate = cell(cells, "delegate")
            if not delegate:
                self.warn(
                    "empty-delegate",
                    "Hand-off row has no delegate target",
                    line=lineno,
                    section=section.heading,
                )
                continue
            triggers.append(
                document.HandoffTrigger(
                    trigger=cell(cells, "trigger"),
                    delegate_to=delegate,
                    context=cell(cells, "context"),
                )
            )
        return triggers

    def _parse_receives(self, lines: list[_Line]) -> list[document.ReceivesFrom]:
        receives: list[document.ReceivesFrom] = []
        for item in _bullets(lines):
            match = _RECEIVES_RE.match(item)
            if match:
                receives.append(
                    document.ReceivesFrom(
                        skill=match.group("skill").strip(),
                        context=match.group("context").strip(),
                    )
                )
            elif name := markdown.strip_inline_markup(item):
                receives.append(document.ReceivesFrom(skill=name))
        return receives


_SECTION_HANDLERS: dict[
    str,
    _typing.Callable[[_DocumentParser, _Block, list[_Line]], dict[str, _typing.Any]],
] = {
    SECTION_IDENTITY: _DocumentParser._parse_identity,
    SECTION_EXPERTISE: _DocumentParser._parse_expertise,
    SECTION_PATTERNS: _DocumentParser._parse_patterns,
    SECTION_ANTI_PATTERNS: _DocumentParser._parse_anti_patterns,
    SECTION_SHARP_EDGES: _DocumentParser._parse_sharp_edges,
    SECTION_COLLABORATION: _DocumentParser._parse_collaboration,
    SECTION_DECISIONS: _DocumentParser._parse_decisions,
}


def parse_skill_markdown(
    content: str,
    *,
    category: str | None = None,
    slug: str | None = None,
    path: _pathlib.Path | None = None,
) -> document.SkillDocument:
    """
    Parse skill document markdown.

    Args:
        content: Raw markdown content.
        category: Category from the file's location. If None, the declared
                  '**Category:**' value is used, then 'uncategorized'.
        slug: Identifier for the document. If None, derived from the title.
        path: Source file, recorded on the document and its warnings.

    Returns:
        Parsed SkillDocument. Never raises for malformed content; problems
        are listed in ``parse_warnings``.
    """
    doc = _DocumentParser(path).parse(content, category=category, slug=slug)
    if doc.parse_warnings:
        _logger.debug(
            "Parsed %s with %d warning(s)",
            path or doc.title or "<string>",
            len(doc.parse_warnings),
        )
    return doc


def slug_for_path(path: _pathlib.Path) -> str:
    """
    Identifier for a skill file.

    The file stem, except for SKILL.md files inside a skill directory,
    which take the directory name.
    """
    if path.stem.upper() == "SKILL" and path.parent.name:
        return markdown.slugify(path.parent.name)
    return markdown.slugify(path.stem) or path.stem


def parse_skill_file(
    path: _pathlib.Path,
    *,
    category: str | None = None,
) -> document.SkillDocument:
    """
    Read and parse a skill document from disk.

    Args:
        path: Markdown file to read (UTF-8).
        category: Category from the file's location.

    Returns:
        Parsed SkillDocument.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    content = path.read_text(encoding="utf-8")
    return parse_skill_markdown(
        content,
        category=category,
        slug=slug_for_path(path),
        path=path,
    )
