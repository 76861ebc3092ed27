"""
Pydantic models for environment and file configuration.

Environment variables are flat (``GRAPHQL_PIPELINE_*``); config files use
nested sections. Both end up as ``PipelineOptions``.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PersistedQuerySettings(BaseModel):
    """Automatic persisted queries (APQ)."""

    enabled: bool = Field(default=False, description="Accept persistedQuery extension")
    ttl: Optional[float] = Field(default=None, gt=0, description="APQ entry TTL in seconds")


class DocumentCacheSettings(BaseModel):
    """Cache of parsed and validated documents."""

    enabled: bool = Field(default=True)


class ParseSettings(BaseModel):
    """Options passed to graphql.parse."""

    no_location: bool = Field(default=False, description="Do not record AST locations")
    max_tokens: Optional[int] = Field(default=None, gt=0, description="Reject documents with more tokens")


class LoggingSettings(BaseModel):
    """Per-request logging (PipelineLogger)."""

    enabled: bool = Field(default=False)
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    format: Literal["json", "text", "colored"] = Field(default="text")
    enable_console: bool = Field(default=True)
    enable_file: bool = Field(default=False)
    file_path: Optional[str] = None
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0, description="10MB")
    backup_count: int = Field(default=5, ge=0)
    enable_correlation_id: bool = Field(default=True)
    log_variables: bool = Field(default=False)
    log_query: bool = Field(default=False)
    slow_request_ms: Optional[float] = Field(default=None, gt=0)

    @field_validator('file_path')
    @classmethod
    def validate_file_path(cls, v: Optional[str], info) -> Optional[str]:
        """file_path is required when enable_file=True."""
        if info.data.get('enable_file') and not v:
            raise ValueError("file_path is required when enable_file=True")
        return v


class PipelineOptions(BaseModel):
    """
    Serializable part of PipelineConfig (everything except stores and callables).

    Example (YAML):
        graphql_pipeline:
          debug: false
          persisted_queries:
            enabled: true
            ttl: 900
          parse:
            max_tokens: 5000
          logging:
            enabled: true
            format: json
    """

    model_config = {"extra": "forbid"}

    debug: bool = Field(default=False)
    protocol_error_status_code: int = Field(default=400, ge=100, lt=600)
    persisted_queries: PersistedQuerySettings = Field(default_factory=PersistedQuerySettings)
    document_cache: DocumentCacheSettings = Field(default_factory=DocumentCacheSettings)
    parse: ParseSettings = Field(default_factory=ParseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class PipelineSettings(BaseSettings):
    """
    Pipeline configuration from environment variables.

    Reads from:
    1. Environment variables (GRAPHQL_PIPELINE_*)
    2. .env file
    3. Defaults

    Example .env file:
        GRAPHQL_PIPELINE_DEBUG=false
        GRAPHQL_PIPELINE_PERSISTED_QUERIES_ENABLED=true
        GRAPHQL_PIPELINE_PERSISTED_QUERY_TTL=900
        GRAPHQL_PIPELINE_DOCUMENT_CACHE_ENABLED=true
        GRAPHQL_PIPELINE_PARSE_MAX_TOKENS=5000
        GRAPHQL_PIPELINE_LOG_ENABLED=true
        GRAPHQL_PIPELINE_LOG_FORMAT=json
        GRAPHQL_PIPELINE_LOG_SLOW_REQUEST_MS=500

    Usage:
        >>> settings = PipelineSettings()
        >>> settings.persisted_queries_enabled
        True
    """

    model_config = SettingsConfigDict(
        env_prefix='GRAPHQL_PIPELINE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    debug: bool = Field(default=False)
    protocol_error_status_code: int = Field(default=400, ge=100, lt=600)

    # APQ
    persisted_queries_enabled: bool = Field(default=False)
    persisted_query_ttl: Optional[float] = Field(default=None, gt=0)

    # Document cache
    document_cache_enabled: bool = Field(default=True)

    # Parser
    parse_no_location: bool = Field(default=False)
    parse_max_tokens: Optional[int] = Field(default=None, gt=0)

    # Logging
    log_enabled: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_enable_console: bool = Field(default=True)
    log_enable_file: bool = Field(default=False)
    log_file_path: Optional[str] = None
    log_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(default=5, ge=0)
    log_enable_correlation_id: bool = Field(default=True)
    log_variables: bool = Field(default=False)
    log_query: bool = Field(default=False)
    log_slow_request_ms: Optional[float] = Field(default=None, gt=0)

    def to_options(self) -> PipelineOptions:
        """Convert flat env settings to nested PipelineOptions."""
        return PipelineOptions(
            debug=self.debug,
            protocol_error_status_code=self.protocol_error_status_code,
            persisted_queries=PersistedQuerySettings(
                enabled=self.persisted_queries_enabled,
                ttl=self.persisted_query_ttl,
            ),
            document_cache=DocumentCacheSettings(enabled=self.document_cache_enabled),
            parse=ParseSettings(
                no_location=self.parse_no_location,
                max_tokens=self.parse_max_tokens,
            ),
            logging=LoggingSettings(
                enabled=self.log_enabled,
                level=self.log_level,
                format=self.log_format,
                enable_console=self.log_enable_console,
                enable_file=self.log_enable_file,
                file_path=self.log_file_path,
                max_bytes=self.log_max_bytes,
                backup_count=self.log_backup_count,
                enable_correlation_id=self.log_enable_correlation_id,
                log_variables=self.log_variables,
                log_query=self.log_query,
                slow_request_ms=self.log_slow_request_ms,
            ),
        )
