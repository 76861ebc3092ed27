"""Core модули GraphQL request pipeline."""

from .cache import InMemoryKeyValueCache, KeyValueCache, PrefixingKeyValueCache
from .config import PersistedQueriesConfig, PipelineConfig
from .context import (
    GraphQLRequest,
    GraphQLResponse,
    HeaderMap,
    HTTPRequest,
    HTTPResponseInfo,
    PipelineState,
    RequestContext,
    RequestMetrics,
    ContextSealedError,
)
from .dispatcher import Dispatcher
from .document_cache import DocumentCacheGateway
from .error_handler import ErrorHandler, is_bad_user_input_error, matches_variable_coercion_error
from .exceptions import (
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
    from_graphql_error,
)
from .field_instrumentation import FieldResolutionMiddleware, build_field_middleware
from .identity import QueryIdentity, QueryIdentityResolver, compute_query_hash

__all__ = [
    # Cache
    "KeyValueCache",
    "InMemoryKeyValueCache",
    "PrefixingKeyValueCache",
    # Config
    "PersistedQueriesConfig",
    "PipelineConfig",
    # Context
    "GraphQLRequest",
    "GraphQLResponse",
    "HeaderMap",
    "HTTPRequest",
    "HTTPResponseInfo",
    "PipelineState",
    "RequestContext",
    "RequestMetrics",
    "ContextSealedError",
    # Components
    "Dispatcher",
    "DocumentCacheGateway",
    "ErrorHandler",
    "FieldResolutionMiddleware",
    "build_field_middleware",
    "QueryIdentity",
    "QueryIdentityResolver",
    "compute_query_hash",
    "is_bad_user_input_error",
    "matches_variable_coercion_error",
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
    "from_graphql_error",
]
