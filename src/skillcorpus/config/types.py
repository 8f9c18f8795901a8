"""Configuration type definitions for Skillcorpus settings.

This module defines the Pydantic models used to represent configuration
sections nested within the main Settings class:

- CorpusConfig: root, categories, exclude_dirs, exclude_files, extensions
- LoaderConfig: parallel, max_workers, strict_io
- ValidationConfig: check_references, placeholder_titles
- DisplayConfig: summary_max_chars
- LoggingConfig: level, journal, journal_dir, private

All types use `extra="allow"` so unknown fields are preserved. Use
`collect_all_extra_fields()` to audit a config for typos.
"""

import typing as _typing

import pydantic as _pydantic

import skillcorpus.constants as constants

# =============================================================================
# Base class with introspection
# =============================================================================


class ConfigBase(_pydantic.BaseModel):
    """
    Base class for all config types.

    Unknown fields are preserved rather than silently dropped.
    """

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """
        Return fields that were provided but not in the schema.

        Returns:
            Dict of field_name -> value for all unrecognized fields.
        """
        return dict(self.model_extra) if self.model_extra else {}

    def collect_all_extra_fields(
        self,
        prefix: str = "",
    ) -> dict[str, _typing.Any]:
        """
        Recursively collect extra fields from this config and nested configs.

        Returns a flat dict with dotted paths as keys, e.g.:
            {"loader.max_wokers": 4}
        """
        result: dict[str, _typing.Any] = {}

        for key, value in self.get_extra_fields().items():
            path = f"{prefix}.{key}" if prefix else key
            result[path] = value

        for field_name in self.__class__.model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                child_prefix = f"{prefix}.{field_name}" if prefix else field_name
                result.update(value.collect_all_extra_fields(child_prefix))

        return result


def _as_tuple(value: _typing.Any) -> _typing.Any:
    """Accept a comma-separated string for list fields."""
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    return value


NameList = _typing.Annotated[tuple[str, ...], _pydantic.BeforeValidator(_as_tuple)]
"""A list of names; YAML lists and "a, b" strings are both accepted."""


# =============================================================================
# Corpus Settings
# =============================================================================


class CorpusConfig(ConfigBase):
    """
    Corpus layout.

    YAML section: corpus.*
    """

    root: str = "."
    """Corpus root directory (relative paths resolve against the cwd)."""

    categories: NameList = constants.KNOWN_CATEGORIES
    """Categories accepted by validation."""

    exclude_dirs: NameList = constants.DEFAULT_EXCLUDE_DIRS
    """Directory names never descended into."""

    exclude_files: NameList = constants.DEFAULT_EXCLUDE_FILES
    """File names never loaded."""

    extensions: NameList = constants.DEFAULT_EXTENSIONS
    """File suffixes treated as skill documents."""

    @_pydantic.field_validator("extensions")
    @classmethod
    def _dotted(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ext if ext.startswith(".") else f".{ext}" for ext in value)


# =============================================================================
# Loader Settings
# =============================================================================


class LoaderConfig(ConfigBase):
    """
    Corpus loading.

    YAML section: loader.*
    """

    parallel: bool = True
    """Parse files on a thread pool."""

    max_workers: int = _pydantic.Field(default=constants.DEFAULT_MAX_WORKERS, ge=1, le=256)
    """Upper bound on loader threads."""

    strict_io: bool = False
    """Abort the load on an unreadable skill file instead of skipping it."""


# =============================================================================
# Validation Settings
# =============================================================================


class ValidationConfig(ConfigBase):
    """
    Validation behavior.

    YAML section: validation.*
    """

    check_references: bool = True
    """Report references that resolve to no loaded skill."""

    placeholder_titles: NameList = constants.PLACEHOLDER_TITLES
    """Sharp-edge titles flagged as unfilled template fields."""


# =============================================================================
# Display Settings
# =============================================================================


class DisplayConfig(ConfigBase):
    """
    Output formatting.

    YAML section: display.*
    """

    summary_max_chars: int = _pydantic.Field(
        default=constants.DEFAULT_SUMMARY_MAX_CHARS, ge=10
    )
    """Summaries longer than this are truncated in listings."""


# =============================================================================
# Logging Settings
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Console log level."""

    journal: bool = False
    """Write a JSONL journal of each corpus load."""

    journal_dir: str | None = None
    """Journal directory. None = use default."""

    private: bool = True
    """Lock journal directory to owner-only (drwx------)."""
