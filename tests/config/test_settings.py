"""Tests for configuration settings."""

import json as _json
import pathlib as _pathlib

import pydantic as _pydantic
import pytest as _pytest

import skillcorpus.config as config
import skillcorpus.config.types as types
import skillcorpus.constants as constants


class TestSettingsDefaults:
    """Test Settings default values when environment is clean."""

    def test_defaults_from_builtin_config(self, clean_settings: config.Settings) -> None:
        """Defaults come from the bundled config.yaml."""
        assert clean_settings.version == 1
        assert clean_settings.corpus.root == "."
        assert clean_settings.corpus.categories == constants.KNOWN_CATEGORIES
        assert clean_settings.corpus.extensions == (".md",)
        assert clean_settings.loader.parallel is True
        assert clean_settings.loader.max_workers == 8
        assert clean_settings.loader.strict_io is False
        assert clean_settings.validation.check_references is True
        assert clean_settings.validation.placeholder_titles == constants.PLACEHOLDER_TITLES
        assert clean_settings.display.summary_max_chars == 200
        assert clean_settings.logging.level == "warning"
        assert clean_settings.logging.journal is False

    def test_no_extra_fields_by_default(self, clean_settings: config.Settings) -> None:
        assert clean_settings.has_extra_fields() is False


class TestSettingsEnvironmentOverride:
    """Environment variables override config files."""

    def test_nested_env_var(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SKILLCORPUS_LOADER__MAX_WORKERS", "3")
        monkeypatch.setenv("SKILLCORPUS_LOADER__STRICT_IO", "true")
        settings = config.Settings.construct_without_dotenv()
        assert settings.loader.max_workers == 3
        assert settings.loader.strict_io is True
        # Sibling keys still come from the YAML defaults
        assert settings.loader.parallel is True

    def test_corpus_root_from_env(self, monkeypatch: _pytest.MonkeyPatch, tmp_path: _pathlib.Path) -> None:
        monkeypatch.setenv("SKILLCORPUS_CORPUS__ROOT", str(tmp_path))
        settings = config.Settings.construct_without_dotenv()
        assert settings.corpus_root == tmp_path

    def test_list_from_env_json(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """List fields take JSON from the environment."""
        monkeypatch.setenv("SKILLCORPUS_CORPUS__CATEGORIES", _json.dumps(["cooking", "travel"]))
        settings = config.Settings.construct_without_dotenv()
        assert settings.corpus.categories == ("cooking", "travel")


class TestConfigFiles:
    """User and project config files are layered over the defaults."""

    def test_user_config(self, tmp_path_factory: _pytest.TempPathFactory, monkeypatch: _pytest.MonkeyPatch) -> None:
        user_dir = tmp_path_factory.mktemp("user")
        (user_dir / "config.yaml").write_text("display:\n  summary_max_chars: 50\n", encoding="utf-8")
        monkeypatch.setenv("SKILLCORPUS_CONFIG_DIR", str(user_dir))

        settings = config.Settings.construct_without_dotenv()

        assert settings.display.summary_max_chars == 50
        assert settings.config_dir == user_dir

    def test_project_config_beats_user_config(
        self,
        isolated_config: _pathlib.Path,
        tmp_path_factory: _pytest.TempPathFactory,
        monkeypatch: _pytest.MonkeyPatch,
    ) -> None:
        user_dir = tmp_path_factory.mktemp("user")
        (user_dir / "config.yaml").write_text("loader:\n  max_workers: 2\n", encoding="utf-8")
        monkeypatch.setenv("SKILLCORPUS_CONFIG_DIR", str(user_dir))
        project_config = isolated_config / ".skillcorpus" / "config.yaml"
        project_config.parent.mkdir()
        project_config.write_text("loader:\n  max_workers: 4\n", encoding="utf-8")

        settings = config.Settings.construct_without_dotenv()

        assert settings.loader.max_workers == 4
        assert settings.project_root == isolated_config

    def test_unknown_keys_are_collected(
        self,
        isolated_config: _pathlib.Path,
    ) -> None:
        """Typos survive as extra fields for auditing."""
        project_config = isolated_config / ".skillcorpus" / "config.yaml"
        project_config.parent.mkdir()
        project_config.write_text("loader:\n  max_wokers: 4\ncolour: blue\n", encoding="utf-8")

        settings = config.Settings.construct_without_dotenv()

        assert settings.collect_all_extra_fields() == {"loader.max_wokers": 4, "colour": "blue"}
        assert settings.has_extra_fields()

    def test_malformed_config_raises(self, isolated_config: _pathlib.Path) -> None:
        project_config = isolated_config / ".skillcorpus" / "config.yaml"
        project_config.parent.mkdir()
        project_config.write_text("loader: [\n", encoding="utf-8")

        with _pytest.raises(config.ConfigFileError):
            config.Settings.construct_without_dotenv()


class TestSettingsValidation:
    """Invalid values are rejected by the config types."""

    def test_max_workers_rejects_zero(self) -> None:
        with _pytest.raises(_pydantic.ValidationError):
            types.LoaderConfig(max_workers=0)

    def test_summary_max_chars_minimum(self) -> None:
        with _pytest.raises(_pydantic.ValidationError):
            types.DisplayConfig(summary_max_chars=5)

    def test_logging_level_choices(self) -> None:
        with _pytest.raises(_pydantic.ValidationError):
            types.LoggingConfig(level="loud")  # type: ignore[arg-type]

    def test_extensions_get_leading_dot(self) -> None:
        assert types.CorpusConfig(extensions=["md", ".markdown"]).extensions == (".md", ".markdown")

    def test_comma_separated_lists(self) -> None:
        assert types.CorpusConfig(categories="agents, finance").categories == ("agents", "finance")


class TestSettingsSerialization:
    """Tests for Settings.to_dict."""

    def test_to_dict_sections(self, clean_settings: config.Settings) -> None:
        data = clean_settings.to_dict()
        assert set(data) == {
            "version",
            "corpus",
            "loader",
            "validation",
            "display",
            "logging",
            "config_dir",
            "project_root",
        }
        assert data["loader"]["max_workers"] == 8
        _json.dumps(data)

    def test_journal_dir(self, clean_settings: config.Settings) -> None:
        assert clean_settings.journal_dir is None
        clean_settings.logging.journal_dir = "~/journals"
        assert clean_settings.journal_dir == _pathlib.Path("~/journals").expanduser()


class TestFindProjectRoot:
    """Tests for find_project_root() function."""

    @_pytest.fixture(autouse=True)
    def _no_env_root(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SKILLCORPUS_PROJECT_ROOT", raising=False)

    def test_env_var_wins(self, monkeypatch: _pytest.MonkeyPatch, tmp_path: _pathlib.Path) -> None:
        monkeypatch.setenv("SKILLCORPUS_PROJECT_ROOT", str(tmp_path))
        assert config.find_project_root(_pathlib.Path("/")) == tmp_path

    def test_finds_directory_containing_pyproject_toml(self, tmp_path: _pathlib.Path) -> None:
        """Should find directory containing pyproject.toml marker."""
        (tmp_path / "pyproject.toml").touch()
        subdir = tmp_path / "src" / "pkg"
        subdir.mkdir(parents=True)

        assert config.find_project_root(subdir) == tmp_path

    def test_finds_skillcorpus_directory(self, tmp_path: _pathlib.Path) -> None:
        (tmp_path / ".skillcorpus").mkdir()
        subdir = tmp_path / "skills" / "agents"
        subdir.mkdir(parents=True)

        assert config.find_project_root(subdir) == tmp_path

    def test_finds_nearest_marker_walking_up(self, tmp_path: _pathlib.Path) -> None:
        """Should find the nearest project marker when walking up directories."""
        outer = tmp_path / "outer"
        outer.mkdir()
        (outer / "pyproject.toml").touch()
        inner = outer / "inner"
        inner.mkdir()
        (inner / ".git").mkdir()
        deep = inner / "src" / "pkg"
        deep.mkdir(parents=True)

        assert config.find_project_root(deep) == inner
