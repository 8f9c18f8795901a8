"""Tests for the load journal and console logging setup."""

import json as _json
import logging as _logging
import os as _os
import pathlib as _pathlib
import stat as _stat
import typing as _typing

import pytest as _pytest

import skillcorpus.logging as sc_logging
import skillcorpus.skills.parser as parser


def _read_events(path: _pathlib.Path) -> list[dict[str, _typing.Any]]:
    return [_json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestLoadJournal:
    """Tests for LoadJournal."""

    def test_explicit_file(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "nested" / "journal.jsonl"
        with sc_logging.LoadJournal(log_file=path) as journal:
            journal.log_load_start(tmp_path, 2)
            journal.log_file_failed(tmp_path / "bad.md", "invalid utf-8")

        assert journal.file_path == path
        assert journal.event_count == 2
        events = _read_events(path)
        assert [e["event_type"] for e in events] == ["load_start", "file_failed"]
        assert [e["event_number"] for e in events] == [1, 2]
        assert events[0]["file_count"] == 2
        assert events[1]["error"] == "invalid utf-8"

    def test_auto_named_file_in_private_dir(self, tmp_path: _pathlib.Path) -> None:
        log_dir = tmp_path / "logs"
        with sc_logging.LoadJournal(log_dir=log_dir) as journal:
            journal.log_load_end(document_count=1, failure_count=0, warning_count=0, duration_ms=1.234)

        assert journal.file_path is not None
        assert journal.file_path.parent == log_dir
        assert journal.file_path.name.startswith("skillcorpus_")
        assert journal.file_path.suffix == ".jsonl"
        assert _stat.S_IMODE(_os.stat(log_dir).st_mode) == 0o700
        assert _read_events(journal.file_path)[0]["duration_ms"] == 1.23

    def test_disabled_writes_nothing(self, tmp_path: _pathlib.Path) -> None:
        journal = sc_logging.LoadJournal(log_dir=tmp_path / "logs", enabled=False)
        journal.log_load_start(tmp_path, 0)
        journal.close()

        assert journal.enabled is False
        assert journal.file_path is None
        assert journal.event_count == 0
        assert not (tmp_path / "logs").exists()

    def test_document_event(self, tmp_path: _pathlib.Path, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = parser.parse_skill_markdown(
            skill_markdown("Agent Memory", edges=[("CRITICAL", "undefined")]),
            category="agents",
            slug="agent-memory",
        )
        path = tmp_path / "journal.jsonl"
        with sc_logging.LoadJournal(log_file=path) as journal:
            journal.log_document_loaded(doc)

        event = _read_events(path)[0]
        assert event["ref"] == "agents/agent-memory"
        assert event["sharp_edges"] == 1
        assert event["warnings"] == ["placeholder-title"]

    def test_duplicate_event(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "journal.jsonl"
        with sc_logging.LoadJournal(log_file=path) as journal:
            journal.log_duplicate("Agent Memory", "agents", tmp_path / "a.md", tmp_path / "b.md")

        event = _read_events(path)[0]
        assert event["event_type"] == "duplicate_document"
        assert event["second_path"] == str(tmp_path / "b.md")

    def test_default_dir(self) -> None:
        assert sc_logging.default_journal_dir().name == "skillcorpus-logs"


class TestConfigureLogging:
    """Tests for configure_logging."""

    @_pytest.fixture(autouse=True)
    def _restore_root_logger(self) -> _typing.Iterator[None]:
        root = _logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    @_pytest.mark.parametrize(
        ("name", "expected"),
        [("debug", _logging.DEBUG), ("info", _logging.INFO), ("error", _logging.ERROR)],
    )
    def test_sets_level(self, name: sc_logging.LogLevel, expected: int) -> None:
        sc_logging.configure_logging(name)
        assert _logging.getLogger().level == expected

    def test_last_call_wins(self) -> None:
        sc_logging.configure_logging("debug")
        sc_logging.configure_logging("warning")
        root = _logging.getLogger()
        assert root.level == _logging.WARNING
        assert len(root.handlers) == 1
