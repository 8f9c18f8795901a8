"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with SKILLCORPUS_ prefix
3. .env file (if SKILLCORPUS_ENV_FILE points at one)
4. Layered YAML config files:
   - Project config: .skillcorpus/config.yaml (highest)
   - User config: ~/.config/skillcorpus/config.yaml
   - Built-in defaults: bundled defaults/config.yaml (lowest)

Nested config uses double underscore delimiter:
  SKILLCORPUS_LOADER__MAX_WORKERS=4
  SKILLCORPUS_CORPUS__ROOT=/srv/skills
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import skillcorpus.config.sources as sources
import skillcorpus.config.types as types

PROJECT_MARKERS = (sources.PROJECT_CONFIG_DIR, ".git", "pyproject.toml")
"""Files or directories whose presence marks a project root."""


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    Only SKILLCORPUS_ENV_FILE selects one. If it is set but the file does
    not exist, no .env is loaded rather than falling back silently.
    """
    if env_file := _os.environ.get("SKILLCORPUS_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
    return None


def find_project_root(start_path: _pathlib.Path | None = None) -> _pathlib.Path:
    """
    Find the project root directory.

    Tries (in order):
    1. SKILLCORPUS_PROJECT_ROOT environment variable
    2. Nearest ancestor containing .skillcorpus/, .git or pyproject.toml
    3. Current working directory
    """
    if env_root := _os.environ.get("SKILLCORPUS_PROJECT_ROOT"):
        return _pathlib.Path(env_root)

    if start_path is None:
        start_path = _pathlib.Path.cwd()

    current = start_path.resolve()
    home = _pathlib.Path.home().resolve()
    while current != current.parent:
        # Never treat the home directory itself as a project
        if current == home:
            break
        if any((current / marker).exists() for marker in PROJECT_MARKERS):
            return current
        current = current.parent

    return _pathlib.Path.cwd()


class Settings(_pydantic_settings.BaseSettings):
    """
    Skillcorpus configuration settings.

    All settings can be overridden via environment variables with the
    SKILLCORPUS_ prefix. For nested config, use double underscore:
    SKILLCORPUS_LOADER__MAX_WORKERS=4

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (SKILLCORPUS_*)
    3. .env file
    4. Project config (.skillcorpus/config.yaml)
    5. User config (~/.config/skillcorpus/config.yaml)
    6. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="SKILLCORPUS_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",  # SKILLCORPUS_LOADER__MAX_WORKERS
        extra="allow",  # Preserve unknown fields for config auditing
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (SKILLCORPUS_* env vars)
        3. dotenv_settings (.env file)
        4. yaml settings (layered config.yaml files)
        5. defaults via Field definitions, lowest
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            sources.LayeredYamlSettingsSource(settings_cls, find_project_root()),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings from environment variables only, without loading .env file.

        Useful for test isolation and for reproducing issues without .env
        interference.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    # =========================================================================
    # Config version (for future migrations)
    # =========================================================================

    version: int = _pydantic.Field(default=1, description="Config schema version")

    # =========================================================================
    # Nested config sections
    # =========================================================================

    corpus: types.CorpusConfig = _pydantic.Field(default_factory=types.CorpusConfig)
    """Corpus layout (root, categories, exclusions)."""

    loader: types.LoaderConfig = _pydantic.Field(default_factory=types.LoaderConfig)
    """Loader settings (parallelism, strict I/O)."""

    validation: types.ValidationConfig = _pydantic.Field(
        default_factory=types.ValidationConfig
    )
    """Validation settings."""

    display: types.DisplayConfig = _pydantic.Field(default_factory=types.DisplayConfig)
    """Output formatting."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging and load journal settings."""

    # =========================================================================
    # Derived paths
    # =========================================================================

    @property
    def config_dir(self) -> _pathlib.Path:
        """User configuration directory."""
        return sources.get_user_config_dir()

    @property
    def project_root(self) -> _pathlib.Path:
        return find_project_root()

    @property
    def corpus_root(self) -> _pathlib.Path:
        """Corpus root as a path (~ expanded)."""
        return _pathlib.Path(self.corpus.root).expanduser()

    @property
    def journal_dir(self) -> _pathlib.Path | None:
        """Configured journal directory, or None for the default."""
        if self.logging.journal_dir:
            return _pathlib.Path(self.logging.journal_dir).expanduser()
        return None

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Get unknown fields at the top level of Settings."""
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Recursively collect all extra fields from Settings and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"loader.max_wokers": 4}
        """
        result: dict[str, _typing.Any] = dict(self.get_extra_fields())
        for field_name in ("corpus", "loader", "validation", "display", "logging"):
            nested = getattr(self, field_name)
            result.update(nested.collect_all_extra_fields(prefix=field_name))
        return result

    def has_extra_fields(self) -> bool:
        """Check if there are any unknown fields anywhere in the config."""
        return bool(self.collect_all_extra_fields())

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, _typing.Any]:
        """Convert settings to dictionary (for JSON output)."""
        return {
            "version": self.version,
            "corpus": self.corpus.model_dump(mode="json", exclude=set(self.corpus.get_extra_fields())),
            "loader": self.loader.model_dump(mode="json", exclude=set(self.loader.get_extra_fields())),
            "validation": self.validation.model_dump(
                mode="json", exclude=set(self.validation.get_extra_fields())
            ),
            "display": self.display.model_dump(mode="json", exclude=set(self.display.get_extra_fields())),
            "logging": self.logging.model_dump(mode="json", exclude=set(self.logging.get_extra_fields())),
            "config_dir": str(self.config_dir),
            "project_root": str(self.project_root),
        }
