"""
Configuration loader from environment variables and .env files.

Main entry point for loading PipelineConfig outside of code.
"""

from typing import Any, Optional

from ..cache import InMemoryKeyValueCache, KeyValueCache
from ..config import PersistedQueriesConfig, PipelineConfig
from ..logging.config import LoggingConfig
from .profiles import ProfileType, get_env_file_path
from .validator import PipelineOptions, PipelineSettings


def build_pipeline_config(
    options: PipelineOptions,
    persisted_query_cache: Optional[KeyValueCache] = None,
    document_store: Optional[KeyValueCache] = None,
    **overrides: Any
) -> PipelineConfig:
    """
    Build PipelineConfig from validated options.

    Stores are created in memory unless provided; stores of disabled
    features are ignored.

    Args:
        options: Validated options (env or file)
        persisted_query_cache: APQ store (e.g. Redis-backed KeyValueCache)
        document_store: Document cache store
        **overrides: PipelineConfig fields (root_value, format_error, executor, ...)

    Returns:
        PipelineConfig instance
    """
    persisted_queries = None
    if options.persisted_queries.enabled:
        persisted_queries = PersistedQueriesConfig(
            cache=persisted_query_cache if persisted_query_cache is not None else InMemoryKeyValueCache(),
            ttl=options.persisted_queries.ttl,
        )

    if options.document_cache.enabled:
        if document_store is None:
            document_store = InMemoryKeyValueCache()
    else:
        document_store = None

    parse_options = {"no_location": options.parse.no_location}
    if options.parse.max_tokens is not None:
        parse_options["max_tokens"] = options.parse.max_tokens

    logging_config = None
    log = options.logging
    if log.enabled:
        logging_config = LoggingConfig.create(
            level=log.level,
            format=log.format,
            enable_console=log.enable_console,
            enable_file=log.enable_file,
            file_path=log.file_path,
            max_bytes=log.max_bytes,
            backup_count=log.backup_count,
            enable_correlation_id=log.enable_correlation_id,
            log_variables=log.log_variables,
            log_query=log.log_query,
            slow_request_ms=log.slow_request_ms,
        )

    values = dict(
        persisted_queries=persisted_queries,
        document_store=document_store,
        parse_options=parse_options,
        debug=options.debug,
        protocol_error_status_code=options.protocol_error_status_code,
        logging=logging_config,
    )
    values.update(overrides)
    return PipelineConfig(**values)


def load_from_env(
    profile: Optional[ProfileType] = None,
    env_file: Optional[str] = None,
    persisted_query_cache: Optional[KeyValueCache] = None,
    document_store: Optional[KeyValueCache] = None,
    **overrides: Any
) -> PipelineConfig:
    """
    Load PipelineConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit PipelineConfig fields
    2. Environment variables (GRAPHQL_PIPELINE_*)
    3. .env file (profile-specific or default)
    4. Defaults

    Example:
        >>> config = load_from_env(profile="production", persisted_query_cache=redis_cache)
        >>> pipeline = RequestPipeline(schema, config)
    """
    if env_file is None:
        env_file = get_env_file_path(profile)

    settings = PipelineSettings(_env_file=env_file)

    return build_pipeline_config(
        settings.to_options(),
        persisted_query_cache=persisted_query_cache,
        document_store=document_store,
        **overrides
    )


def print_config_summary(config: PipelineConfig) -> None:
    """
    Print configuration summary (stores and callables are not printed).

    Example:
        >>> print_config_summary(load_from_env())
        PipelineConfig:
          persisted_queries: True (ttl=900)
          ...
    """
    summary = config.to_dict()
    print("PipelineConfig:")
    print(f"  persisted_queries: {summary['persisted_queries']} (ttl={summary['persisted_query_ttl']})")
    print(f"  document_store: {summary['document_store']}")
    print(f"  validation_rules: {summary['validation_rules']} extra")
    print(f"  debug: {summary['debug']}")
    print(f"  protocol_error_status_code: {summary['protocol_error_status_code']}")

    if config.logging:
        print(f"  logging: level={config.logging.level.value}, format={config.logging.format.value}")
        if config.logging.enable_file:
            print(f"    file: {config.logging.file_path}")
