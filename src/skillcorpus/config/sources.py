"""Custom pydantic-settings sources for Skillcorpus configuration.

This module provides:

- LayeredYamlSettingsSource: A pydantic-settings source that loads
  configuration from layered YAML files and deep-merges them.

Configuration layers (in precedence order, highest first):
1. Environment variables (handled by pydantic-settings)
2. Project config: .skillcorpus/config.yaml in project root
3. User config: ~/.config/skillcorpus/config.yaml (or SKILLCORPUS_CONFIG_DIR)
4. Built-in defaults: bundled config.yaml

Nested mappings merge key by key; any other value (including lists)
from a higher layer replaces the lower one.

Environment variables:
- SKILLCORPUS_CONFIG_DIR: Override user config directory (default: ~/.config/skillcorpus)
"""

import copy as _copy
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings
import yaml as _yaml

# Environment variable for overriding user config directory
ENV_CONFIG_DIR = "SKILLCORPUS_CONFIG_DIR"

PROJECT_CONFIG_DIR = ".skillcorpus"
CONFIG_FILENAME = "config.yaml"


class ConfigFileError(Exception):
    """Error loading or parsing a configuration file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")


def deep_merge(
    base: dict[str, _typing.Any],
    override: _typing.Mapping[str, _typing.Any],
) -> dict[str, _typing.Any]:
    """
    Merge ``override`` into a copy of ``base``.

    Mappings present in both are merged recursively; everything else in
    ``override`` replaces the value in ``base``.
    """
    merged = _copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, _typing.Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = _copy.deepcopy(value)
    return merged


class LayeredYamlSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    Settings source that loads from layered YAML config files.

    Flow:
    1. Load each YAML file into a dict
    2. Deep-merge the dicts, lowest precedence first
    3. Return the merged dict to pydantic-settings for validation

    Layers (lowest to highest precedence):
    1. Built-in defaults (src/skillcorpus/config/defaults/config.yaml)
    2. User config (~/.config/skillcorpus/config.yaml)
    3. Project config (.skillcorpus/config.yaml)
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        project_root: _pathlib.Path | None = None,
        *,
        user_config_path: _pathlib.Path | None = None,
        builtin_config_path: _pathlib.Path | None = None,
    ) -> None:
        """
        Initialize the settings source.

        Args:
            settings_cls: The Settings class being populated.
            project_root: Optional project root path for project-level config.
            user_config_path: Override path for user config file (for testing).
                If not provided, uses SKILLCORPUS_CONFIG_DIR or the XDG path.
            builtin_config_path: Override path for builtin defaults (for testing).
                If not provided, uses the bundled defaults/config.yaml.
        """
        super().__init__(settings_cls)
        self._project_root = project_root
        self._user_config_path = user_config_path
        self._builtin_config_path = builtin_config_path
        # Layers that were actually loaded, highest precedence first
        self._loaded_layers: list[tuple[str, _pathlib.Path]] = []
        self._merged = self._load_config_layers()

    def _load_config_layers(self) -> dict[str, _typing.Any]:
        """
        Load and merge config files.

        Returns:
            Merged configuration dict.

        Raises:
            ConfigFileError: If the built-in defaults are missing or empty,
                or any present layer is unreadable or malformed.
        """
        layer_info: list[tuple[str, _pathlib.Path]] = []

        # Built-in defaults must exist and have content; anything else is an
        # installation problem
        builtin_path = self._get_builtin_config_path()
        if not builtin_path.exists():
            raise ConfigFileError(
                builtin_path,
                "built-in defaults not found (possible installation problem)",
            )
        merged = self._load_yaml_file(builtin_path)
        if not merged:
            raise ConfigFileError(
                builtin_path,
                "built-in defaults file is empty (possible installation problem)",
            )
        layer_info.append(("built-in", builtin_path))

        # User and project configs are optional
        optional: list[tuple[str, _pathlib.Path]] = [("user", self._get_user_config_path())]
        if self._project_root:
            optional.append(("project", get_project_config_path(self._project_root)))

        for name, path in optional:
            if not path.exists():
                continue
            content = self._load_yaml_file(path)
            if content:
                merged = deep_merge(merged, content)
                layer_info.append((name, path))

        layer_info.reverse()
        self._loaded_layers = layer_info
        return merged

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """
        Layers that were actually loaded.

        Returns:
            List of (layer_name, path) tuples, highest precedence first.
        """
        return list(self._loaded_layers)

    def get_layer_paths(self) -> list[tuple[str, _pathlib.Path, bool]]:
        """
        Get info about all config layers.

        Returns:
            List of (layer_name, path, exists) tuples in precedence order
            (highest first: project, user, builtin).
        """
        layers: list[tuple[str, _pathlib.Path, bool]] = []

        if self._project_root:
            project_path = get_project_config_path(self._project_root)
            layers.append(("project", project_path, project_path.exists()))

        user_path = self._get_user_config_path()
        layers.append(("user", user_path, user_path.exists()))

        builtin_path = self._get_builtin_config_path()
        layers.append(("built-in", builtin_path, builtin_path.exists()))

        return layers

    def _get_builtin_config_path(self) -> _pathlib.Path:
        """Get path to builtin defaults, respecting override."""
        if self._builtin_config_path is not None:
            return self._builtin_config_path
        return get_builtin_defaults_path()

    def _get_user_config_path(self) -> _pathlib.Path:
        """Get path to user config, respecting override and env var."""
        if self._user_config_path is not None:
            return self._user_config_path
        return get_user_config_path()

    def _load_yaml_file(
        self,
        path: _pathlib.Path,
    ) -> dict[str, _typing.Any] | None:
        """
        Load a YAML file and return its contents as a dict.

        Returns:
            Parsed YAML contents, or None if file is empty.

        Raises:
            ConfigFileError: If the file cannot be read, is malformed YAML,
                or contains non-dict content at the top level.
        """
        try:
            content = path.read_text(encoding="utf-8")
        except PermissionError as e:
            raise ConfigFileError(path, f"permission denied: {e}") from e
        except OSError as e:
            raise ConfigFileError(path, f"cannot read file: {e}") from e

        try:
            parsed = _yaml.safe_load(content)
        except _yaml.YAMLError as e:
            raise ConfigFileError(path, f"invalid YAML: {e}") from e

        if parsed is None:
            return None

        if not isinstance(parsed, dict):
            type_name = type(parsed).__name__
            raise ConfigFileError(
                path,
                f"config must be a YAML mapping (dict), got {type_name}",
            )

        return parsed

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        """
        Get value for a field from the merged config.

        Returns:
            Tuple of (value, field_name, is_complex).
        """
        value = self._merged.get(field_name)
        if value is None:
            return None, field_name, False
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, _typing.Any]:
        """
        Return merged config as a plain dict for Pydantic validation.

        Unknown keys are included and end up in model_extra.
        """
        return _copy.deepcopy(self._merged)


def get_builtin_defaults_path() -> _pathlib.Path:
    """Get the path to the built-in defaults config file."""
    return _pathlib.Path(__file__).parent / "defaults" / CONFIG_FILENAME


def get_user_config_dir() -> _pathlib.Path:
    """
    Get the user config directory.

    Respects SKILLCORPUS_CONFIG_DIR environment variable if set,
    otherwise uses XDG standard path.
    """
    config_dir_env = _os.environ.get(ENV_CONFIG_DIR)
    if config_dir_env:
        return _pathlib.Path(config_dir_env)
    return _pathlib.Path.home() / ".config" / "skillcorpus"


def get_user_config_path() -> _pathlib.Path:
    """Get the path to the user config file."""
    return get_user_config_dir() / CONFIG_FILENAME


def get_project_config_path(project_root: _pathlib.Path) -> _pathlib.Path:
    """Get the path to .skillcorpus/config.yaml within a project."""
    return project_root / PROJECT_CONFIG_DIR / CONFIG_FILENAME
