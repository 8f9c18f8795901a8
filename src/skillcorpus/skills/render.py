"""
Render skill documents back to their canonical Markdown layout.

The output uses the same headings the parser recognizes, so a rendered
document parses back to the same content. Sections without content are
written with an italic placeholder note, as distributed skill files do.
"""

from __future__ import annotations

import logging as _logging
import pathlib as _pathlib
import typing as _typing

import skillcorpus.skills.document as document
import skillcorpus.skills.parser as parser
import skillcorpus.utils.markdown as markdown

_logger = _logging.getLogger(__name__)

SHARP_EDGES_INTRO = "*Real production issues that cause outages and bugs.*"
PATTERNS_PLACEHOLDER = "*Patterns documented in full version.*"
SHARP_EDGES_PLACEHOLDER = "*Sharp edges documented in full version.*"


def _render_header(doc: document.SkillDocument) -> list[str]:
    out = [f"# {doc.title}", ""]
    if doc.summary:
        out.extend(f"> {line}" if line else ">" for line in doc.summary.splitlines())
        out.append("")
    category = doc.declared_category or doc.category
    out.extend([f"**Category:** {category} | **Version:** {doc.version}", ""])
    if doc.tags:
        out.extend([f"**Tags:** {', '.join(sorted(doc.tags))}", ""])
    out.extend(["---", ""])
    return out


def _render_patterns(doc: document.SkillDocument) -> list[str]:
    out = [f"## {parser.SECTION_PATTERNS}", ""]
    if not doc.patterns:
        return out + [PATTERNS_PLACEHOLDER, ""]
    for pattern in doc.patterns:
        out.append(f"### {pattern.name}")
        if pattern.description:
            out.append(pattern.description)
        if pattern.when_to_use:
            out.append(f"**When:** {pattern.when_to_use}")
        out.append("")
    return out


def _render_anti_patterns(doc: document.SkillDocument) -> list[str]:
    if not doc.anti_patterns:
        return []
    out = [f"## {parser.SECTION_ANTI_PATTERNS}", ""]
    for anti in doc.anti_patterns:
        out.append(f"### {anti.name}")
        if anti.description:
            out.append(anti.description)
        if anti.why_bad:
            out.append(f"**Why it's bad:** {anti.why_bad}")
        if anti.instead_advice:
            out.append(f"**Instead:** {anti.instead_advice}")
        out.append("")
    return out


def _edge_heading(edge: document.SharpEdge) -> str:
    if edge.severity is not document.Severity.UNKNOWN:
        return f"### [{edge.severity.label}] {edge.title}".rstrip()
    if edge.raw_severity is not None:
        return f"### [{edge.raw_severity}] {edge.title}".rstrip()
    return f"### {edge.title}"


def _render_sharp_edges(doc: document.SkillDocument) -> list[str]:
    out = [f"## {parser.SECTION_SHARP_EDGES}", "", SHARP_EDGES_INTRO, ""]
    if not doc.sharp_edges:
        return out + [SHARP_EDGES_PLACEHOLDER, ""]
    for edge in doc.sharp_edges:
        out.extend([_edge_heading(edge), ""])
        if edge.situation:
            out.extend([f"**Situation:** {edge.situation}", ""])
        if edge.why_it_happens:
            out.extend(["**Why it happens:**", edge.why_it_happens, ""])
        if edge.solution_text:
            out.extend(["**Solution:**", edge.solution_text, ""])
        if edge.symptoms:
            out.append("**Symptoms:**")
            out.extend(f"- {symptom}" for symptom in edge.symptoms)
            out.append("")
        out.extend(["---", ""])
    return out


def _render_collaboration(doc: document.SkillDocument) -> list[str]:
    if not doc.collaboration and not doc.receives_from:
        return []
    out = [f"## {parser.SECTION_COLLABORATION}", ""]
    if doc.collaboration:
        rows = [
            [
                f"`{markdown.escape_table_cell(t.trigger)}`" if t.trigger else "",
                markdown.escape_table_cell(t.delegate_to),
                markdown.escape_table_cell(t.context),
            ]
            for t in doc.collaboration
        ]
        out.extend([f"### {parser.SUBSECTION_HANDOFF}", ""])
        out.append(
            markdown.format_markdown_table(["Trigger", "Delegate To", "Context"], rows).rstrip("\n")
        )
        out.append("")
    if doc.receives_from:
        out.extend([f"### {parser.SUBSECTION_RECEIVES}", ""])
        out.extend(f"- **{r.skill}**: {r.context}".rstrip() for r in doc.receives_from)
        out.append("")
    return out


def render_skill_markdown(doc: document.SkillDocument) -> str:
    """
    Render a document in the canonical skill layout.

    Section order: Identity, Expertise Areas, Patterns, Anti-Patterns,
    Sharp Edges, Decision Framework, other sections, Collaboration,
    Works Well With.
    """
    out = _render_header(doc)

    if doc.identity:
        out.extend([f"## {parser.SECTION_IDENTITY}", "", doc.identity, ""])

    if doc.expertise_areas:
        out.extend([f"## {parser.SECTION_EXPERTISE}", ""])
        out.extend(f"- {area}" for area in doc.expertise_areas)
        out.append("")

    out.extend(_render_patterns(doc))
    out.extend(_render_anti_patterns(doc))
    out.extend(_render_sharp_edges(doc))

    if doc.decisions:
        out.extend([f"## {parser.SECTION_DECISIONS}", "", doc.decisions, ""])

    for heading, text in doc.extra_sections:
        out.extend([f"## {heading}", ""])
        if text:
            out.extend([text, ""])

    out.extend(_render_collaboration(doc))

    if doc.works_well_with:
        out.extend([f"### {parser.SUBSECTION_WORKS_WELL_WITH}", ""])
        out.extend(f"- {name}" for name in doc.works_well_with)
        out.append("")

    return "\n".join(out).rstrip("\n") + "\n"


def export_corpus(
    documents: _typing.Iterable[document.SkillDocument],
    out_dir: _pathlib.Path | str,
    *,
    only: str | None = None,
) -> list[_pathlib.Path]:
    """
    Write every document to ``<out_dir>/<category>/<slug>.md``.

    Args:
        documents: Documents to export.
        out_dir: Output directory (created if missing).
        only: If given, export only the document with this slug.

    Returns:
        Written paths, in document order.
    """
    base = _pathlib.Path(out_dir)
    written: list[_pathlib.Path] = []

    for doc in documents:
        if only is not None and doc.slug != only:
            continue
        target = base / doc.category / f"{doc.slug}.md"
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(render_skill_markdown(doc), encoding="utf-8")
        _logger.debug("Wrote %s", target)
        written.append(target)

    _logger.info("Exported %d skills to %s", len(written), base)
    return written
