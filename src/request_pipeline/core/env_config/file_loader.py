"""
Configuration file loader for YAML and JSON files.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..cache import KeyValueCache
from ..config import PipelineConfig
from .loader import build_pipeline_config
from .validator import PipelineOptions

CONFIG_FILE_ENV_VAR = "GRAPHQL_PIPELINE_CONFIG_FILE"
CONFIG_SECTION = "graphql_pipeline"


class ConfigValidationError(Exception):
    """Raised when configuration file is invalid."""

    pass


class ConfigFileLoader:
    """
    Загрузчик конфигурации из файлов.

    Stores и callables (format_error, executor, ...) в файлах не описываются;
    их передают через ``**runtime``.

    Examples:
        >>> config = ConfigFileLoader.from_yaml("graphql.yaml")
        >>> config = ConfigFileLoader.from_file("graphql.json", persisted_query_cache=redis_cache)
        >>> config = ConfigFileLoader.from_env_path()  # GRAPHQL_PIPELINE_CONFIG_FILE
    """

    @staticmethod
    def from_yaml(path: Union[str, Path], **runtime: Any) -> PipelineConfig:
        """
        Загрузить конфиг из YAML файла.

        Raises:
            FileNotFoundError: Если файл не найден
            ConfigValidationError: Если конфиг невалидный
            ImportError: Если PyYAML не установлен
        """
        try:
            import yaml
        except ImportError as e:
            raise ImportError(
                "PyYAML is required to load YAML configs. "
                "Install it with: pip install graphql-request-pipeline[yaml] or pip install pyyaml"
            ) from e

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Invalid YAML syntax in {path}: {e}") from e

        return ConfigFileLoader._build_config(data, str(path), **runtime)

    @staticmethod
    def from_json(path: Union[str, Path], **runtime: Any) -> PipelineConfig:
        """
        Загрузить конфиг из JSON файла.

        Raises:
            FileNotFoundError: Если файл не найден
            ConfigValidationError: Если конфиг невалидный
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid JSON syntax in {path}: {e}") from e

        return ConfigFileLoader._build_config(data, str(path), **runtime)

    @staticmethod
    def from_file(path: Union[str, Path], **runtime: Any) -> PipelineConfig:
        """
        Автоопределение формата по расширению (.yaml, .yml, .json).

        Raises:
            ValueError: Если формат не поддерживается
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            return ConfigFileLoader.from_yaml(path, **runtime)
        if suffix == ".json":
            return ConfigFileLoader.from_json(path, **runtime)

        raise ValueError(
            f"Unsupported config file format: {suffix}. "
            f"Supported formats: .yaml, .yml, .json"
        )

    @staticmethod
    def from_env_path(**runtime: Any) -> Optional[PipelineConfig]:
        """
        Загрузить из пути в GRAPHQL_PIPELINE_CONFIG_FILE; None если переменная не задана.
        """
        config_path = os.environ.get(CONFIG_FILE_ENV_VAR)
        if not config_path:
            return None

        return ConfigFileLoader.from_file(config_path, **runtime)

    @staticmethod
    def _build_config(
        data: Any,
        source: str,
        persisted_query_cache: Optional[KeyValueCache] = None,
        document_store: Optional[KeyValueCache] = None,
        **overrides: Any
    ) -> PipelineConfig:
        if not data:
            raise ConfigValidationError(f"Empty config file: {source}")

        if isinstance(data, dict) and CONFIG_SECTION in data:
            data = data[CONFIG_SECTION]

        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Config must be a dictionary, got {type(data).__name__} in {source}"
            )

        try:
            options = PipelineOptions.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid config in {source}: {e}") from e

        try:
            return build_pipeline_config(
                options,
                persisted_query_cache=persisted_query_cache,
                document_store=document_store,
                **overrides
            )
        except (ValueError, TypeError) as e:
            raise ConfigValidationError(f"Invalid config in {source}: {e}") from e


def load_config_file(path: Union[str, Path], **runtime: Any) -> PipelineConfig:
    """Shortcut for ConfigFileLoader.from_file."""
    return ConfigFileLoader.from_file(path, **runtime)
