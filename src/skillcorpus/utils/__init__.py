"""Utility modules for Skillcorpus."""

from skillcorpus.utils.markdown import (
    FenceTracker,
    escape_table_cell,
    format_markdown_table,
    is_table_separator,
    iter_code_blocks,
    slugify,
    split_table_row,
    strip_inline_markup,
)

__all__ = [
    "FenceTracker",
    "escape_table_cell",
    "format_markdown_table",
    "is_table_separator",
    "iter_code_blocks",
    "slugify",
    "split_table_row",
    "strip_inline_markup",
]
