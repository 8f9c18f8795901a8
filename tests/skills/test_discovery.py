"""Tests for skill file discovery."""

import pathlib as _pathlib

import skillcorpus.skills.discovery as discovery


def _touch(path: _pathlib.Path) -> _pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("# x\n", encoding="utf-8")
    return path


class TestIterSkillFiles:
    """Tests for iter_skill_files."""

    def test_sorted_and_filtered(self, tmp_path: _pathlib.Path) -> None:
        """Only skill documents are returned, in sorted order."""
        _touch(tmp_path / "finance" / "b.md")
        _touch(tmp_path / "agents" / "z.md")
        _touch(tmp_path / "agents" / "a.md")
        _touch(tmp_path / "agents" / "notes.txt")
        _touch(tmp_path / "README.md")

        found = discovery.iter_skill_files(tmp_path)

        assert found == [
            tmp_path / "agents" / "a.md",
            tmp_path / "agents" / "z.md",
            tmp_path / "finance" / "b.md",
        ]

    def test_skips_hidden_and_excluded_dirs(self, tmp_path: _pathlib.Path) -> None:
        _touch(tmp_path / ".git" / "x.md")
        _touch(tmp_path / ".hidden" / "x.md")
        _touch(tmp_path / "node_modules" / "pkg" / "x.md")
        _touch(tmp_path / "scripts" / "x.md")
        _touch(tmp_path / "agents" / ".draft.md")
        kept = _touch(tmp_path / "agents" / "kept.md")

        assert discovery.iter_skill_files(tmp_path) == [kept]

    def test_nested_skill_directories(self, tmp_path: _pathlib.Path) -> None:
        """SKILL.md files inside per-skill directories are found."""
        skill = _touch(tmp_path / "agents" / "agent-memory" / "SKILL.md")
        assert discovery.iter_skill_files(tmp_path) == [skill]

    def test_custom_extensions_case_insensitive(self, tmp_path: _pathlib.Path) -> None:
        upper = _touch(tmp_path / "agents" / "a.MD")
        _touch(tmp_path / "agents" / "b.txt")
        markdown = _touch(tmp_path / "agents" / "c.markdown")

        found = discovery.iter_skill_files(tmp_path, extensions=(".md", ".markdown"))

        assert found == [upper, markdown]

    def test_custom_exclusions(self, tmp_path: _pathlib.Path) -> None:
        _touch(tmp_path / "agents" / "drafts" / "x.md")
        _touch(tmp_path / "agents" / "INDEX.md")
        kept = _touch(tmp_path / "agents" / "kept.md")

        found = discovery.iter_skill_files(
            tmp_path,
            exclude_dirs=("drafts",),
            exclude_files=("INDEX.md",),
        )

        assert found == [kept]

    def test_empty_root(self, tmp_path: _pathlib.Path) -> None:
        assert discovery.iter_skill_files(tmp_path) == []


class TestCategoryForPath:
    """Tests for category_for_path."""

    def test_first_directory_is_category(self, tmp_path: _pathlib.Path) -> None:
        assert discovery.category_for_path(tmp_path / "agents" / "x.md", tmp_path) == "agents"

    def test_nested_file_uses_top_directory(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "agents" / "agent-memory" / "SKILL.md"
        assert discovery.category_for_path(path, tmp_path) == "agents"

    def test_root_file_has_no_category(self, tmp_path: _pathlib.Path) -> None:
        assert discovery.category_for_path(tmp_path / "x.md", tmp_path) is None
