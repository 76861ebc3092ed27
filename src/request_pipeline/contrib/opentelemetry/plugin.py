"""
OpenTelemetry tracing plugin.

One SERVER span per request plus child spans for parsing, validation,
execution and (optionally) every resolved field.
"""

import logging
from typing import Any, List, Optional

from graphql import GraphQLResolveInfo
from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from ...core.context import RequestContext
from ...plugins.plugin import ExecutionListener, PipelinePlugin, PluginPriority, RequestListener

logger = logging.getLogger(__name__)

# Атрибуты по OpenTelemetry semantic conventions для GraphQL
ATTR_OPERATION_NAME = "graphql.operation.name"
ATTR_OPERATION_TYPE = "graphql.operation.type"
ATTR_DOCUMENT = "graphql.document"
ATTR_REQUEST_ID = "graphql.request.id"
ATTR_PERSISTED_QUERY_HIT = "graphql.persisted_query.hit"
ATTR_FIELD_PATH = "graphql.field.path"
ATTR_FIELD_NAME = "graphql.field.name"
ATTR_FIELD_TYPE = "graphql.field.type"


def _end_span(span: Span, error: Optional[BaseException] = None) -> None:
    try:
        if error is not None:
            span.record_exception(error)
            span.set_status(Status(StatusCode.ERROR, str(error)))
    finally:
        span.end()


class _TracingExecutionListener(ExecutionListener):

    def __init__(self, plugin: 'OpenTelemetryPlugin', parent: Span):
        self.plugin = plugin
        self.span = plugin._start_child("graphql.execute", parent)
        if plugin.trace_fields:
            self.will_resolve_field = self._will_resolve_field

    def _will_resolve_field(self, source: Any, args: Any, context_value: Any, info: GraphQLResolveInfo):
        path = ".".join(str(key) for key in info.path.as_list())
        span = self.plugin._start_child(f"graphql.resolve {path}", self.span)
        span.set_attribute(ATTR_FIELD_PATH, path)
        span.set_attribute(ATTR_FIELD_NAME, info.field_name)
        span.set_attribute(ATTR_FIELD_TYPE, str(info.return_type))

        def did_resolve_field(error: Optional[BaseException], result: Any) -> None:
            _end_span(span, error)

        return did_resolve_field

    def execution_did_end(self, error: Optional[BaseException]) -> None:
        _end_span(self.span, error)


class _TracingRequestListener(RequestListener):

    def __init__(self, plugin: 'OpenTelemetryPlugin', span: Span):
        self.plugin = plugin
        self.span = span

    def parsing_did_start(self, ctx: RequestContext):
        span = self.plugin._start_child("graphql.parse", self.span)

        def parsing_did_end(error: Optional[BaseException]) -> None:
            _end_span(span, error)

        return parsing_did_end

    def validation_did_start(self, ctx: RequestContext):
        span = self.plugin._start_child("graphql.validate", self.span)

        def validation_did_end(errors: Optional[List[Any]]) -> None:
            if errors:
                span.set_attribute("graphql.validation.error_count", len(errors))
                span.set_status(Status(StatusCode.ERROR, str(errors[0])))
            span.end()

        return validation_did_end

    def did_resolve_operation(self, ctx: RequestContext) -> None:
        operation_type = ctx.operation.operation.value if ctx.operation else None
        if operation_type:
            self.span.set_attribute(ATTR_OPERATION_TYPE, operation_type)
        if ctx.operation_name:
            self.span.set_attribute(ATTR_OPERATION_NAME, ctx.operation_name)
        self.span.update_name(" ".join(filter(None, ["graphql", operation_type, ctx.operation_name])))

        if self.plugin.record_document and ctx.source:
            self.span.set_attribute(ATTR_DOCUMENT, ctx.source[: self.plugin.max_document_length])

    def execution_did_start(self, ctx: RequestContext) -> ExecutionListener:
        return _TracingExecutionListener(self.plugin, self.span)

    def did_encounter_errors(self, ctx: RequestContext) -> None:
        for error in ctx.errors or []:
            self.span.add_event("graphql.error", {
                "message": error.message,
                "code": str((error.extensions or {}).get("code", "INTERNAL_SERVER_ERROR")),
            })
        first = (ctx.errors or [None])[0]
        if first is not None:
            self.span.set_status(Status(StatusCode.ERROR, first.message))

    def will_send_response(self, ctx: RequestContext) -> None:
        self.span.set_attribute(ATTR_PERSISTED_QUERY_HIT, ctx.metrics.persisted_query_hit)
        self.span.set_attribute("http.response.status_code", ctx.response.status_code)
        self.span.end()


class OpenTelemetryPlugin(PipelinePlugin):
    """
    Plugin for OpenTelemetry distributed tracing.

    Priority: FIRST (0) - span запроса открывается раньше остальных плагинов.

    W3C Trace Context из заголовков запроса (``traceparent``) становится
    родителем span'а запроса.

    Example:
        >>> pipeline = RequestPipeline(schema, plugins=[OpenTelemetryPlugin(trace_fields=True)])
        >>> await pipeline.execute_operation("query Hello { hello }")
        # spans: "graphql query Hello" -> graphql.parse, graphql.validate,
        #        graphql.execute -> "graphql.resolve hello"
    """

    priority = PluginPriority.FIRST

    def __init__(
        self,
        tracer_name: str = "request_pipeline",
        trace_fields: bool = False,
        record_document: bool = False,
        max_document_length: int = 2048,
    ):
        """
        Args:
            tracer_name: Name of the tracer
            trace_fields: Span на каждое разрешённое поле (дорого для больших ответов)
            record_document: Записывать текст запроса в атрибут graphql.document
            max_document_length: Максимальная длина записываемого текста
        """
        self.tracer = trace.get_tracer(tracer_name)
        self.propagator = TraceContextTextMapPropagator()
        self.trace_fields = trace_fields
        self.record_document = record_document
        self.max_document_length = max_document_length

    def _start_child(self, name: str, parent: Span) -> Span:
        return self.tracer.start_span(name, context=trace.set_span_in_context(parent))

    def request_did_start(self, ctx: RequestContext) -> RequestListener:
        headers = ctx.request.http.headers if ctx.request.http else {}
        parent_context = self.propagator.extract(carrier=headers)

        span = self.tracer.start_span("graphql", context=parent_context, kind=SpanKind.SERVER)
        span.set_attribute(ATTR_REQUEST_ID, ctx.request_id)
        if ctx.request.http:
            span.set_attribute("http.request.method", ctx.request.http.method)

        return _TracingRequestListener(self, span)

    def __repr__(self) -> str:
        return (
            f"OpenTelemetryPlugin(trace_fields={self.trace_fields}, "
            f"record_document={self.record_document})"
        )
