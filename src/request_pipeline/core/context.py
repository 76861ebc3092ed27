"""Request context and request/response models shared with plugin hooks."""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from graphql import DocumentNode, GraphQLError, GraphQLSchema, OperationDefinitionNode


class HeaderMap(dict):
    """Case-insensitive header dictionary (names are stored lower-cased).

    Example:
        >>> headers = HeaderMap({"Cache-Control": "no-cache"})
        >>> headers["cache-control"]
        'no-cache'
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__()
        self.update(*args, **kwargs)

    def __setitem__(self, key: str, value: str) -> None:
        super().__setitem__(key.lower(), value)

    def __getitem__(self, key: str) -> str:
        return super().__getitem__(key.lower())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and super().__contains__(key.lower())

    def __delitem__(self, key: str) -> None:
        super().__delitem__(key.lower())

    def get(self, key: str, default: Any = None) -> Any:
        return super().get(key.lower(), default)

    def update(self, *args: Any, **kwargs: Any) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value


@dataclass
class HTTPRequest:
    """Transport details of the incoming request."""

    method: str = "POST"
    headers: HeaderMap = field(default_factory=HeaderMap)

    def __post_init__(self):
        self.method = self.method.upper()
        if not isinstance(self.headers, HeaderMap):
            self.headers = HeaderMap(self.headers)


@dataclass
class GraphQLRequest:
    """Raw GraphQL request as produced by the transport layer.

    Attributes:
        query: Query text (may be omitted for persisted queries)
        operation_name: Name of the operation to run
        variables: Variable values
        extensions: Request extensions (e.g. ``persistedQuery``)
        http: Transport details (method, headers)
    """

    query: Optional[str] = None
    operation_name: Optional[str] = None
    variables: Optional[Dict[str, Any]] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    http: Optional[HTTPRequest] = None

    @classmethod
    def from_dict(
        cls,
        body: Mapping[str, Any],
        method: str = "POST",
        headers: Optional[Mapping[str, str]] = None,
    ) -> 'GraphQLRequest':
        """Build a request from a JSON body (``query``, ``operationName``, ...).

        Example:
            >>> GraphQLRequest.from_dict({"query": "{ hello }"}).query
            '{ hello }'
        """
        return cls(
            query=body.get("query"),
            operation_name=body.get("operationName"),
            variables=body.get("variables"),
            extensions=dict(body.get("extensions") or {}),
            http=HTTPRequest(method=method, headers=HeaderMap(headers or {})),
        )


@dataclass
class HTTPResponseInfo:
    """HTTP part of the response: status code and headers."""

    status_code: Optional[int] = None
    headers: HeaderMap = field(default_factory=HeaderMap)


@dataclass
class GraphQLResponse:
    """Response assembled by the pipeline.

    ``to_dict()`` returns the wire body ``{data?, errors?, extensions?}``.
    """

    data: Optional[Dict[str, Any]] = None
    errors: Optional[List[Dict[str, Any]]] = None
    extensions: Optional[Dict[str, Any]] = None
    http: HTTPResponseInfo = field(default_factory=HTTPResponseInfo)

    @property
    def status_code(self) -> int:
        """Effective HTTP status (200 unless overridden)."""
        return self.http.status_code or 200

    @property
    def headers(self) -> HeaderMap:
        return self.http.headers

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.errors is not None:
            body["errors"] = self.errors
        if self.data is not None:
            body["data"] = self.data
        if self.extensions is not None:
            body["extensions"] = self.extensions
        return body


@dataclass
class RequestMetrics:
    """Per-request flags read by reporting plugins."""

    persisted_query_hit: bool = False
    persisted_query_register: bool = False
    response_cache_hit: bool = False
    start_time: float = field(default_factory=time.time)


class PipelineState(str, Enum):
    """States of the request pipeline, in the order they are reached."""
    START = "start"
    IDENTITY_RESOLVED = "identity_resolved"
    SOURCE_NOTIFIED = "source_notified"
    DOCUMENT_FROM_CACHE = "document_from_cache"
    PARSED_AND_VALIDATED = "parsed_and_validated"
    OPERATION_RESOLVED = "operation_resolved"
    OPERATION_NOTIFIED = "operation_notified"
    SHORT_CIRCUIT_RESPONSE = "short_circuit_response"
    EXECUTED = "executed"
    RESPONSE_FORMATTED = "response_formatted"
    SENT = "sent"


class ContextSealedError(AttributeError):
    """Raised when a sealed (already sent) request context is modified."""


@dataclass
class RequestContext:
    """Context passed through every plugin hook during the request lifecycle.

    One instance exists per request. The pipeline writes the fields below as
    phases complete; plugins may read them and use ``metadata`` to share
    their own state.

    Fields written by phase:
        identity resolution: ``query_hash``, ``source``, ``metrics``
        parse/validate or document cache: ``document``
        operation resolution: ``operation``, ``operation_name``
        error paths: ``errors``
        execution: ``field_middleware``
        send: ``response``

    ``document`` can only be set once. After the response has been sent the
    context is sealed and any further assignment raises ContextSealedError.

    Example:
        >>> ctx = RequestContext(request=GraphQLRequest(query="{ hello }"))
        >>> ctx.metadata['cache_key'] = 'abc123'
    """

    request: GraphQLRequest
    schema: Optional[GraphQLSchema] = None
    context_value: Any = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    metrics: RequestMetrics = field(default_factory=RequestMetrics)
    metadata: Dict[str, Any] = field(default_factory=dict)

    state: PipelineState = PipelineState.START
    query_hash: Optional[str] = None
    source: Optional[str] = None
    document: Optional[DocumentNode] = None
    operation: Optional[OperationDefinitionNode] = None
    operation_name: Optional[str] = None
    errors: Optional[List[GraphQLError]] = None
    response: Optional[GraphQLResponse] = None
    # middleware for graphql.execute while field listeners are active;
    # custom executors should pass it on
    field_middleware: Optional[List[Any]] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_sealed"):
            raise ContextSealedError(
                f"Cannot set '{name}': response for request {self.request_id} was already sent"
            )
        if name == "document" and self.__dict__.get("document") is not None:
            if value is not self.__dict__["document"]:
                raise AttributeError("document is already set and cannot be replaced")
        super().__setattr__(name, value)

    @property
    def sealed(self) -> bool:
        return self.__dict__.get("_sealed", False)

    def seal(self) -> None:
        """Mark the response as sent; the context becomes read-only."""
        object.__setattr__(self, "_sealed", True)
