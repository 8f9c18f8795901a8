"""
Configuration module for Skillcorpus.

Uses pydantic-settings for environment variable loading.
"""

from skillcorpus.config.settings import Settings, find_project_root
from skillcorpus.config.sources import (
    ConfigFileError,
    LayeredYamlSettingsSource,
    get_builtin_defaults_path,
    get_project_config_path,
    get_user_config_path,
)

__all__ = [
    "ConfigFileError",
    "LayeredYamlSettingsSource",
    "Settings",
    "find_project_root",
    "get_builtin_defaults_path",
    "get_project_config_path",
    "get_user_config_path",
]
