"""GraphQL request pipeline - persisted queries, document cache and plugin hooks."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .pipeline import RequestPipeline
from .core.cache import InMemoryKeyValueCache, KeyValueCache, PrefixingKeyValueCache
from .core.config import PersistedQueriesConfig, PipelineConfig
from .core.context import (
    GraphQLRequest,
    GraphQLResponse,
    HeaderMap,
    HTTPRequest,
    PipelineState,
    RequestContext,
)
from .core.exceptions import (
    ErrorCode,
    PipelineError,
    BadRequestError,
    PersistedQueryNotSupportedError,
    PersistedQueryNotFoundError,
    ProtocolError,
    MethodNotAllowedError,
    QuerySyntaxError,
    QueryValidationError,
    BadUserInputError,
    PluginAbortedError,
    InternalServerError,
    ConfigurationError,
)
from .core.identity import compute_query_hash
from .core.logging import LoggingConfig
from .plugins.plugin import PipelinePlugin, PluginPriority, RequestListener, ExecutionListener
from .plugins.logging_plugin import LoggingPlugin
from .plugins.monitoring_plugin import MonitoringPlugin
from .plugins.response_cache_plugin import ResponseCachePlugin

# NullHandler: библиотека не пишет в лог, пока приложение не настроит logging
logging.getLogger('request_pipeline').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("graphql-request-pipeline")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Core
    "RequestPipeline",
    "compute_query_hash",

    # Config
    "PipelineConfig",
    "PersistedQueriesConfig",
    "LoggingConfig",

    # Stores
    "KeyValueCache",
    "InMemoryKeyValueCache",
    "PrefixingKeyValueCache",

    # Request / response
    "GraphQLRequest",
    "GraphQLResponse",
    "HeaderMap",
    "HTTPRequest",
    "PipelineState",
    "RequestContext",

    # Exceptions
    "ErrorCode",
    "PipelineError",
    "BadRequestError",
    "PersistedQueryNotSupportedError",
    "PersistedQueryNotFoundError",
    "ProtocolError",
    "MethodNotAllowedError",
    "QuerySyntaxError",
    "QueryValidationError",
    "BadUserInputError",
    "PluginAbortedError",
    "InternalServerError",
    "ConfigurationError",

    # Plugins
    "PipelinePlugin",
    "PluginPriority",
    "RequestListener",
    "ExecutionListener",
    "LoggingPlugin",
    "MonitoringPlugin",
    "ResponseCachePlugin",
]
