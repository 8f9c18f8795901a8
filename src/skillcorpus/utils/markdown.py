"""
Markdown helpers shared by the parser and the renderer.

Nothing here knows about skill documents. These are line-level utilities:
code fence tracking, table rows, inline markup stripping and slugs.
"""

from __future__ import annotations

import re as _re

_FENCE_RE = _re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_SLUG_STRIP_RE = _re.compile(r"[^a-z0-9]+")
_LINK_RE = _re.compile(r"\[([^\]]*)\]\([^)]*\)")
_TABLE_SEPARATOR_CELL_RE = _re.compile(r"^:?-+:?$")


class FenceTracker:
    """
    Tracks whether a line-by-line scan is inside a fenced code block.

    A fence opens with three or more backticks or tildes and closes with a
    line of the same character that is at least as long. Content inside a
    fence is opaque: headings and labels there are never interpreted.

    Usage:
        fences = FenceTracker()
        for line in lines:
            if fences.feed(line):
                continue  # fence line or fenced content
            ...
    """

    def __init__(self) -> None:
        self._fence: str | None = None

    @property
    def inside(self) -> bool:
        """Whether the scan is currently inside an open fence."""
        return self._fence is not None

    def feed(self, line: str) -> bool:
        """
        Consume one line.

        Returns:
            True if the line is an opening fence, fenced content, or a
            closing fence. False for ordinary lines.
        """
        match = _FENCE_RE.match(line)
        if self._fence is None:
            if match:
                self._fence = match.group("fence")
                return True
            return False

        if match and not match.group("info").strip():
            fence = match.group("fence")
            if fence[0] == self._fence[0] and len(fence) >= len(self._fence):
                self._fence = None
        return True


def iter_code_blocks(text: str) -> list[tuple[str | None, str]]:
    """
    Extract fenced code blocks from markdown text.

    Returns:
        List of (language, content) tuples. Language is None when the
        opening fence has no info string. An unterminated fence runs to
        the end of the text.
    """
    blocks: list[tuple[str | None, str]] = []
    fence: str | None = None
    language: str | None = None
    body: list[str] = []

    for line in text.splitlines():
        match = _FENCE_RE.match(line)
        if fence is None:
            if match:
                fence = match.group("fence")
                info = match.group("info").strip()
                language = info.split()[0] if info else None
                body = []
            continue

        if match and not match.group("info").strip():
            candidate = match.group("fence")
            if candidate[0] == fence[0] and len(candidate) >= len(fence):
                blocks.append((language, "\n".join(body)))
                fence = None
                continue
        body.append(line)

    if fence is not None:
        blocks.append((language, "\n".join(body)))

    return blocks


def slugify(text: str) -> str:
    """
    Normalize a human-readable name into a slug.

    "Agent Memory Systems" and "agent-memory-systems" both become
    "agent-memory-systems".
    """
    return _SLUG_STRIP_RE.sub("-", strip_inline_markup(text).lower()).strip("-")


def strip_inline_markup(text: str) -> str:
    """Remove emphasis markers, backticks and link targets from inline text."""
    text = _LINK_RE.sub(r"\1", text)
    return text.replace("`", "").replace("**", "").replace("__", "").strip().strip("*_").strip()


def split_table_row(line: str) -> list[str] | None:
    """
    Split a markdown table row into stripped cells.

    Only an escaped pipe (\\|) is special: it stays inside its cell as '|'.
    Any other backslash is kept as written, so a cell like `\\d+` survives.

    Returns:
        List of cells, or None if the line is not a table row.
    """
    stripped = line.strip()
    if not stripped.startswith("|"):
        return None

    cells: list[str] = []
    current: list[str] = []
    body = stripped[1:]
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and body[index + 1 : index + 2] == "|":
            current.append("|")
            index += 2
            continue
        if char == "|":
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        index += 1

    # Content after the final pipe is only a cell if the row lacks a closing pipe
    tail = "".join(current).strip()
    if tail:
        cells.append(tail)
    return cells


def is_table_separator(cells: list[str]) -> bool:
    """Whether a split row is the |---|---| line under a table header."""
    return bool(cells) and all(_TABLE_SEPARATOR_CELL_RE.match(c.replace(" ", "")) for c in cells)


def escape_table_cell(text: str) -> str:
    """
    Escape a value for use inside a table cell.

    Pipes become \\| and newlines become spaces. Backslashes need no escaping
    because split_table_row only treats a backslash before a pipe specially.
    """
    return text.replace("|", "\\|").replace("\n", " ")


def format_markdown_table(
    headers: list[str],
    rows: list[list[str]],
) -> str:
    """
    Format a properly aligned markdown table.

    Args:
        headers: Column header strings.
        rows: List of rows, each row is a list of cell values.

    Returns:
        Formatted markdown table string with aligned columns.

    Example:
        >>> format_markdown_table(
        ...     ["Name", "Value"],
        ...     [["Total", "100"], ["Average", "25"]],
        ... )
        '| Name    | Value |\\n|---------|-------|\\n| Total   | 100   |\\n| Average | 25    |\\n'
    """
    if not headers or not rows:
        return ""

    num_cols = len(headers)
    widths = [len(h) for h in headers]

    for row in rows:
        for i, cell in enumerate(row[:num_cols]):
            widths[i] = max(widths[i], len(cell))

    lines: list[str] = []

    header_cells = [f" {headers[i]:<{widths[i]}} " for i in range(num_cols)]
    lines.append("|" + "|".join(header_cells) + "|")

    sep_cells = ["-" * (widths[i] + 2) for i in range(num_cols)]
    lines.append("|" + "|".join(sep_cells) + "|")

    for row in rows:
        padded = list(row[:num_cols]) + [""] * (num_cols - len(row))
        cells = [f" {padded[i]:<{widths[i]}} " for i in range(num_cols)]
        lines.append("|" + "|".join(cells) + "|")

    return "\n".join(lines) + "\n"
