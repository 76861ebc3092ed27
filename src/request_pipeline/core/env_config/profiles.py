"""
Профили окружения: development, staging, production.

Каждый профиль читает свой .env файл (``.env.<profile>``).
"""

import logging
import os
from typing import Any, Literal, Optional

ProfileType = Literal["development", "staging", "production"]

PROFILE_ENV_VAR = "GRAPHQL_PIPELINE_ENV"
_PROFILES = ("development", "staging", "production")

logger = logging.getLogger(__name__)


def get_env_file_path(profile: Optional[ProfileType] = None) -> str:
    """
    Имя .env файла профиля; без профиля берётся GRAPHQL_PIPELINE_ENV.

    Example:
        >>> get_env_file_path("production")
        '.env.production'
    """
    profile = profile or os.getenv(PROFILE_ENV_VAR)
    return f".env.{profile}" if profile else ".env"


def detect_profile() -> Optional[ProfileType]:
    """
    Определить профиль по окружению.

    GRAPHQL_PIPELINE_ENV, затем CI=true (staging), затем
    KUBERNETES_SERVICE_HOST (production); иначе None.
    """
    env = os.getenv(PROFILE_ENV_VAR)
    if env in _PROFILES:
        return env

    if os.getenv("CI") == "true":
        return "staging"

    if os.getenv("KUBERNETES_SERVICE_HOST"):
        return "production"

    return None


class ProfileConfig:
    """
    Настройки pipeline для профиля.

    Example:
        >>> profile = ProfileConfig()              # профиль определяется автоматически
        >>> config = profile.load_config(persisted_query_cache=redis_cache)
        >>> pipeline = RequestPipeline(schema, config)
    """

    def __init__(self, profile: Optional[ProfileType] = None):
        self.profile = profile or detect_profile()
        self.env_file = get_env_file_path(self.profile)

    def load(self) -> "PipelineSettings":
        from .validator import PipelineSettings

        return PipelineSettings(_env_file=self.env_file)

    def load_config(self, **runtime: Any) -> "PipelineConfig":
        """PipelineConfig профиля; ``runtime`` - хранилища и поля PipelineConfig."""
        from .loader import build_pipeline_config

        settings = self.load()
        if self.profile == "production" and settings.debug:
            # debug добавляет stacktrace в ответы клиентам
            logger.warning("Debug mode is enabled in the production profile (%s)", self.env_file)

        return build_pipeline_config(settings.to_options(), **runtime)

    def __repr__(self) -> str:
        return f"ProfileConfig(profile={self.profile!r}, env_file={self.env_file!r})"
