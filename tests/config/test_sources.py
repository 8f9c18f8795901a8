"""Tests for custom pydantic-settings sources.

Tests for LayeredYamlSettingsSource:
- Loading built-in defaults
- Merging user and project layers (merge order)
- Handling missing files gracefully
- Handling malformed YAML
- Integration with pydantic-settings
"""

import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings
import pytest as _pytest

import skillcorpus.config.sources as sources


class TestHelperFunctions:
    """Tests for path helper functions."""

    def test_get_builtin_defaults_path(self) -> None:
        """Should return path to defaults/config.yaml."""
        path = sources.get_builtin_defaults_path()
        assert path.name == "config.yaml"
        assert path.parent.name == "defaults"
        assert path.exists()

    def test_get_user_config_dir_default(
        self,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """Without env var, should return XDG-compliant directory."""
        monkeypatch.delenv("SKILLCORPUS_CONFIG_DIR", raising=False)
        path = sources.get_user_config_dir()
        assert path == _pathlib.Path.home() / ".config" / "skillcorpus"

    def test_get_user_config_path_with_env_var(
        self,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        """With env var set, should use that directory."""
        monkeypatch.setenv("SKILLCORPUS_CONFIG_DIR", "/custom/config/dir")
        path = sources.get_user_config_path()
        assert path == _pathlib.Path("/custom/config/dir/config.yaml")

    def test_get_project_config_path(self) -> None:
        """Should return project-relative config path."""
        project_root = _pathlib.Path("/some/project")
        path = sources.get_project_config_path(project_root)
        assert path == project_root / ".skillcorpus" / "config.yaml"


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_mappings_merge(self) -> None:
        base = {"loader": {"parallel": True, "max_workers": 8}, "version": 1}
        override = {"loader": {"max_workers": 2}}
        assert sources.deep_merge(base, override) == {
            "loader": {"parallel": True, "max_workers": 2},
            "version": 1,
        }

    def test_lists_replace(self) -> None:
        base = {"corpus": {"categories": ["a", "b"]}}
        override = {"corpus": {"categories": ["c"]}}
        assert sources.deep_merge(base, override)["corpus"]["categories"] == ["c"]

    def test_base_not_mutated(self) -> None:
        base = {"loader": {"max_workers": 8}}
        sources.deep_merge(base, {"loader": {"max_workers": 1}})
        assert base == {"loader": {"max_workers": 8}}


# Minimal Settings class for testing
class NestedSettings(_pydantic_settings.BaseSettings):
    """Settings class with nested structure for testing."""

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="TEST_",
        extra="ignore",
    )

    version: int = 0
    loader: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)
    corpus: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)


def _write(path: _pathlib.Path, text: str) -> _pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@_pytest.fixture
def builtin(tmp_path: _pathlib.Path) -> _pathlib.Path:
    return _write(
        tmp_path / "builtin" / "config.yaml",
        "version: 1\nloader:\n  parallel: true\n  max_workers: 8\ncorpus:\n  root: .\n",
    )


class TestLayering:
    """Tests for merging config layers."""

    def test_builtin_only(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        source = sources.LayeredYamlSettingsSource(
            NestedSettings,
            user_config_path=tmp_path / "user" / "config.yaml",
            builtin_config_path=builtin,
        )
        assert source()["loader"] == {"parallel": True, "max_workers": 8}
        assert source.get_loaded_layers() == [("built-in", builtin)]

    def test_user_overrides_builtin(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        user = _write(tmp_path / "user" / "config.yaml", "loader:\n  max_workers: 2\n")
        source = sources.LayeredYamlSettingsSource(
            NestedSettings,
            user_config_path=user,
            builtin_config_path=builtin,
        )
        assert source()["loader"] == {"parallel": True, "max_workers": 2}

    def test_project_overrides_user(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        user = _write(tmp_path / "user" / "config.yaml", "loader:\n  max_workers: 2\n")
        project_root = tmp_path / "project"
        project = _write(project_root / ".skillcorpus" / "config.yaml", "loader:\n  max_workers: 4\n")

        source = sources.LayeredYamlSettingsSource(
            NestedSettings,
            project_root,
            user_config_path=user,
            builtin_config_path=builtin,
        )

        assert source()["loader"]["max_workers"] == 4
        assert [name for name, _ in source.get_loaded_layers()] == ["project", "user", "built-in"]
        assert source.get_loaded_layers()[0][1] == project

    def test_empty_user_file_is_ignored(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        user = _write(tmp_path / "user" / "config.yaml", "")
        source = sources.LayeredYamlSettingsSource(
            NestedSettings,
            user_config_path=user,
            builtin_config_path=builtin,
        )
        assert [name for name, _ in source.get_loaded_layers()] == ["built-in"]

    def test_layer_paths_report_existence(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        source = sources.LayeredYamlSettingsSource(
            NestedSettings,
            tmp_path / "project",
            user_config_path=tmp_path / "user" / "config.yaml",
            builtin_config_path=builtin,
        )
        assert [(name, exists) for name, _, exists in source.get_layer_paths()] == [
            ("project", False),
            ("user", False),
            ("built-in", True),
        ]

    def test_settings_integration(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        """The merged dict validates through pydantic-settings."""
        source = sources.LayeredYamlSettingsSource(
            NestedSettings,
            user_config_path=tmp_path / "none.yaml",
            builtin_config_path=builtin,
        )
        settings = NestedSettings(**source())
        assert settings.version == 1
        assert settings.loader["max_workers"] == 8


class TestErrors:
    """Tests for malformed or missing config files."""

    def test_missing_builtin_raises(self, tmp_path: _pathlib.Path) -> None:
        with _pytest.raises(sources.ConfigFileError, match="built-in defaults not found"):
            sources.LayeredYamlSettingsSource(
                NestedSettings,
                builtin_config_path=tmp_path / "missing.yaml",
            )

    def test_empty_builtin_raises(self, tmp_path: _pathlib.Path) -> None:
        empty = _write(tmp_path / "config.yaml", "")
        with _pytest.raises(sources.ConfigFileError, match="empty"):
            sources.LayeredYamlSettingsSource(NestedSettings, builtin_config_path=empty)

    def test_malformed_yaml_raises(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        user = _write(tmp_path / "user" / "config.yaml", "loader: [unclosed\n")
        with _pytest.raises(sources.ConfigFileError, match="invalid YAML") as exc_info:
            sources.LayeredYamlSettingsSource(
                NestedSettings,
                user_config_path=user,
                builtin_config_path=builtin,
            )
        assert exc_info.value.path == user

    def test_non_mapping_raises(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        user = _write(tmp_path / "user" / "config.yaml", "- a\n- b\n")
        with _pytest.raises(sources.ConfigFileError, match="got list"):
            sources.LayeredYamlSettingsSource(
                NestedSettings,
                user_config_path=user,
                builtin_config_path=builtin,
            )
