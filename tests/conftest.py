"""
Shared pytest fixtures for Skillcorpus tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pytest as _pytest

import skillcorpus.config as config

# =============================================================================
# Environment isolation
# =============================================================================


@_pytest.fixture(autouse=True)
def isolated_config(
    tmp_path_factory: _pytest.TempPathFactory,
    monkeypatch: _pytest.MonkeyPatch,
) -> _pathlib.Path:
    """
    Keep every test away from the real user and project config.

    Clears SKILLCORPUS_* variables and points the user config dir and the
    project root at empty temporary directories.

    Returns:
        The temporary project root.
    """
    for key in list(_os.environ):
        if key.startswith("SKILLCORPUS_"):
            monkeypatch.delenv(key, raising=False)

    base = tmp_path_factory.mktemp("config")
    user_dir = base / "user"
    project_dir = base / "project"
    user_dir.mkdir()
    project_dir.mkdir()

    monkeypatch.setenv("SKILLCORPUS_CONFIG_DIR", str(user_dir))
    monkeypatch.setenv("SKILLCORPUS_PROJECT_ROOT", str(project_dir))
    monkeypatch.delenv("NO_COLOR", raising=False)
    return project_dir


@_pytest.fixture
def clean_settings() -> config.Settings:
    """Settings built from built-in defaults only."""
    return config.Settings.construct_without_dotenv()


# =============================================================================
# Skill document builders
# =============================================================================


def _build_skill_markdown(
    title: str,
    *,
    category: str = "agents",
    version: str = "1.0.0",
    summary: str | None = None,
    tags: _typing.Sequence[str] = ("testing",),
    edges: _typing.Sequence[tuple[str, str]] = (("HIGH", "Something breaks"),),
    delegates: _typing.Sequence[tuple[str, str, str]] = (),
    works_well_with: _typing.Sequence[str] = (),
    receives: _typing.Sequence[tuple[str, str]] = (),
) -> str:
    """Markdown for a well-formed skill document in the distributed layout."""
    lines = [
        f"# {title}",
        "",
        f"> {summary if summary is not None else f'Expert guidance for {title}.'}",
        "",
        f"**Category:** {category} | **Version:** {version}",
        "",
    ]
    if tags:
        lines.extend([f"**Tags:** {', '.join(tags)}", ""])
    lines.extend(
        [
            "---",
            "",
            "## Identity",
            "",
            f"You are an expert in {title}.",
            "",
            "## Patterns",
            "",
            "### Start Small",
            "Build the smallest thing that works.",
            "**When:** Starting a new project",
            "",
            "## Sharp Edges (Gotchas)",
            "",
            "*Real production issues that cause outages and bugs.*",
            "",
        ]
    )
    for severity, edge_title in edges:
        lines.extend(
            [
                f"### [{severity}] {edge_title}",
                "",
                "**Situation:** It happens in production.",
                "",
                "**Why it happens:**",
                "Nobody checked.",
                "",
                "**Solution:**",
                "```python",
                "check()",
                "```",
                "",
                "---",
                "",
            ]
        )
    if delegates or receives:
        lines.extend(["## Collaboration", ""])
    if delegates:
        lines.extend(
            [
                "### When to Hand Off",
                "",
                "| Trigger | Delegate To | Context |",
                "|---------|-------------|--------|",
            ]
        )
        lines.extend(f"| `{t}` | {d} | {c} |" for t, d, c in delegates)
        lines.append("")
    if receives:
        lines.extend(["### Receives Work From", ""])
        lines.extend(f"- **{skill}**: {context}" for skill, context in receives)
        lines.append("")
    if works_well_with:
        lines.extend(["### Works Well With", ""])
        lines.extend(f"- {name}" for name in works_well_with)
        lines.append("")
    return "\n".join(lines)


@_pytest.fixture
def skill_markdown() -> _typing.Callable[..., str]:
    """
    Builder for well-formed skill markdown.

    Usage:
        def test_something(skill_markdown):
            content = skill_markdown("Agent Memory", edges=[("CRITICAL", "Leak")])
    """
    return _build_skill_markdown


@_pytest.fixture
def write_skill(tmp_path: _pathlib.Path) -> _typing.Callable[..., _pathlib.Path]:
    """
    Write a skill document under ``tmp_path / "skills"``.

    Usage:
        path = write_skill("agents", "agent-memory", content)
    """

    def write(category: str | None, slug: str, content: str) -> _pathlib.Path:
        root = tmp_path / "skills"
        directory = root / category if category else root
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{slug}.md"
        path.write_text(content, encoding="utf-8")
        return path

    return write


@_pytest.fixture
def corpus_root(
    tmp_path: _pathlib.Path,
    write_skill: _typing.Callable[..., _pathlib.Path],
) -> _pathlib.Path:
    """
    A small, well-formed corpus.

    agents/agent-memory      -> hands off to llm-architect
    ai-ml/llm-architect      -> hands off to agent-memory (a cycle)
    finance/financial-models (no references)
    """
    write_skill(
        "agents",
        "agent-memory",
        _build_skill_markdown(
            "Agent Memory",
            category="agents",
            tags=("memory", "rag"),
            edges=(("CRITICAL", "Unbounded context growth"), ("LOW", "Stale cache")),
            delegates=(("model selection", "llm-architect", "Choosing a model"),),
        ),
    )
    write_skill(
        "ai-ml",
        "llm-architect",
        _build_skill_markdown(
            "LLM Architect",
            category="ai-ml",
            tags=("llm", "architecture"),
            edges=(("HIGH", "Prompt injection"),),
            delegates=(("memory design", "agent-memory", "Persistence"),),
            works_well_with=("financial-models",),
        ),
    )
    write_skill(
        "finance",
        "financial-models",
        _build_skill_markdown(
            "Financial Models",
            category="finance",
            tags=("finance",),
            edges=(("MEDIUM", "Rounding drift"),),
        ),
    )
    return tmp_path / "skills"
