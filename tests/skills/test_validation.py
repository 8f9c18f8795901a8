"""Tests for skill document validation."""

import typing as _typing

import pytest as _pytest

import skillcorpus.skills.document as document
import skillcorpus.skills.index as index
import skillcorpus.skills.parser as parser
import skillcorpus.skills.validation as validation


def _parse(content: str, category: str = "agents", slug: str = "x") -> document.SkillDocument:
    return parser.parse_skill_markdown(content, category=category, slug=slug)


def _codes(issues: list[validation.ValidationIssue]) -> list[str]:
    return [issue.code for issue in issues]


class TestValidate:
    """Tests for single-document validation."""

    def test_well_formed_document_is_clean(self, skill_markdown: _typing.Callable[..., str]) -> None:
        """A well-formed document has no issues."""
        doc = _parse(skill_markdown("Agent Memory"))
        assert validation.validate(doc) == []

    def test_empty_title_is_error(self) -> None:
        doc = _parse("**Category:** agents | **Version:** 1.0.0\n")
        issues = validation.validate(doc)
        assert "empty-title" in _codes(issues)
        assert next(i for i in issues if i.code == "empty-title").is_error

    def test_unknown_category_is_error(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", category="cooking"), category="cooking")
        issues = validation.validate(doc)
        assert _codes(issues) == ["unknown-category"]
        assert issues[0].level is validation.IssueLevel.ERROR

    def test_configured_categories(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", category="cooking"), category="cooking")
        assert validation.validate(doc, known_categories=["cooking"]) == []

    def test_category_mismatch_is_warning(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", category="finance"), category="agents")
        issues = validation.validate(doc)
        assert _codes(issues) == ["category-mismatch"]
        assert not issues[0].is_error

    def test_category_mismatch_ignores_case(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", category="Agents"), category="agents")
        assert validation.validate(doc) == []

    @_pytest.mark.parametrize("version", ["1.0", "1.0.0", "v2.1.3", "1.0.0-beta.1"])
    def test_valid_versions(self, version: str, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", version=version))
        assert validation.validate(doc) == []

    @_pytest.mark.parametrize("version", ["", "latest", "1", "one.two"])
    def test_invalid_versions(self, version: str, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", version=version))
        assert _codes(validation.validate(doc)) == ["invalid-version"]

    def test_unknown_severity_is_error(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", edges=[("undefined", "Real title")]))
        issues = validation.validate(doc)
        assert _codes(issues) == ["unknown-severity"]
        assert issues[0].is_error
        assert "undefined" in issues[0].message

    def test_placeholder_title_is_warning(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", edges=[("CRITICAL", "undefined")]))
        issues = validation.validate(doc)
        assert _codes(issues) == ["placeholder-title"]
        assert not issues[0].is_error

    def test_custom_placeholder_titles(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", edges=[("HIGH", "TBD")]))
        assert validation.validate(doc) == []
        issues = validation.validate(doc, placeholder_titles=["tbd"])
        assert _codes(issues) == ["placeholder-title"]

    def test_issue_records_document(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", version="bad"), slug="my-skill")
        issue = validation.validate(doc)[0]
        assert issue.document == "agents/my-skill"
        assert issue.to_dict()["level"] == "warning"


class TestReferences:
    """Tests for unresolved reference reporting."""

    def test_unresolved_reference(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(
            skill_markdown("X", delegates=[("t", "ghost-skill", "c")]),
            slug="x",
        )
        issues = validation.validate(doc, index=index.SkillIndex([doc]))

        assert len(issues) == 1
        issue = issues[0]
        assert isinstance(issue, validation.UnresolvedReferenceWarning)
        assert issue.target == "ghost-skill"
        assert issue.relation == "delegates_to"
        assert not issue.is_error
        assert issue.to_dict()["target"] == "ghost-skill"

    def test_resolved_by_title(self, skill_markdown: _typing.Callable[..., str]) -> None:
        target = _parse(skill_markdown("LLM Architect"), category="ai-ml", slug="llm-architect")
        doc = _parse(skill_markdown("X", works_well_with=["LLM Architect"]))
        assert validation.validate(doc, index=index.SkillIndex([doc, target])) == []

    def test_references_skipped_without_index(self, skill_markdown: _typing.Callable[..., str]) -> None:
        doc = _parse(skill_markdown("X", receives=[("ghost", "ctx")]))
        assert validation.validate(doc) == []


class TestValidateAll:
    """Tests for corpus-wide validation."""

    def test_resolves_within_corpus(self, skill_markdown: _typing.Callable[..., str]) -> None:
        a = _parse(skill_markdown("A", delegates=[("t", "b", "")]), slug="a")
        b = _parse(skill_markdown("B", delegates=[("t", "a", "")]), slug="b")
        assert validation.validate_all([a, b]) == []

    def test_without_reference_checks(self, skill_markdown: _typing.Callable[..., str]) -> None:
        a = _parse(skill_markdown("A", delegates=[("t", "nowhere", "")]), slug="a")
        assert validation.validate_all([a], check_references=False) == []
        assert _codes(validation.validate_all([a])) == ["unresolved-reference"]

    def test_forwards_options(self, skill_markdown: _typing.Callable[..., str]) -> None:
        a = _parse(skill_markdown("A", category="cooking"), category="cooking", slug="a")
        assert validation.validate_all([a], known_categories=["cooking"]) == []
