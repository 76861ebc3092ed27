"""
Environment and file configuration for the request pipeline.

Example:
    >>> from request_pipeline.core.env_config import load_from_env, ConfigFileLoader
    >>>
    >>> config = load_from_env()                              # .env + GRAPHQL_PIPELINE_*
    >>> config = load_from_env(profile="production")          # .env.production
    >>> config = ConfigFileLoader.from_file("graphql.yaml")   # YAML / JSON
"""

from .loader import build_pipeline_config, load_from_env, print_config_summary
from .file_loader import ConfigFileLoader, ConfigValidationError, load_config_file
from .validator import (
    PipelineSettings,
    PipelineOptions,
    PersistedQuerySettings,
    DocumentCacheSettings,
    ParseSettings,
    LoggingSettings,
)
from .profiles import ProfileType, ProfileConfig, detect_profile, get_env_file_path

__all__ = [
    # Loaders
    "load_from_env",
    "build_pipeline_config",
    "print_config_summary",
    "ConfigFileLoader",
    "ConfigValidationError",
    "load_config_file",
    # Validators
    "PipelineSettings",
    "PipelineOptions",
    "PersistedQuerySettings",
    "DocumentCacheSettings",
    "ParseSettings",
    "LoggingSettings",
    # Profiles
    "ProfileType",
    "ProfileConfig",
    "detect_profile",
    "get_env_file_path",
]
