"""
OpenTelemetry metrics plugin.
"""

import logging
import time
from typing import Dict

from opentelemetry import metrics
from opentelemetry.metrics import Counter, Histogram, UpDownCounter

from ...core.context import RequestContext
from ...plugins.plugin import PipelinePlugin, PluginPriority, RequestListener

logger = logging.getLogger(__name__)


class _MetricsListener(RequestListener):

    def __init__(self, plugin: 'OpenTelemetryMetrics'):
        self.plugin = plugin
        self.started = time.perf_counter()

    def did_encounter_errors(self, ctx: RequestContext) -> None:
        for error in ctx.errors or []:
            code = (error.extensions or {}).get("code", "INTERNAL_SERVER_ERROR")
            self.plugin.error_counter.add(1, {"code": str(code)})

    def will_send_response(self, ctx: RequestContext) -> None:
        duration = time.perf_counter() - self.started
        labels = self.plugin._get_labels(ctx)

        self.plugin.active_requests.add(-1)
        self.plugin.request_counter.add(1, labels)
        self.plugin.request_duration.record(duration, labels)


class OpenTelemetryMetrics(PipelinePlugin):
    """
    Plugin for OpenTelemetry metrics collection.

    Priority: LAST (100).

    Metrics:
    - graphql_requests_total: Counter, labels operation_name, operation_type, status
    - graphql_request_duration_seconds: Histogram, same labels
    - graphql_errors_total: Counter, label code
    - graphql_active_requests: UpDownCounter

    Example:
        >>> from opentelemetry.sdk.metrics import MeterProvider
        >>> from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
        >>>
        >>> reader = PeriodicExportingMetricReader(ConsoleMetricExporter())
        >>> metrics.set_meter_provider(MeterProvider(metric_readers=[reader]))
        >>> pipeline = RequestPipeline(schema, plugins=[OpenTelemetryMetrics()])
    """

    priority = PluginPriority.LAST

    def __init__(self, meter_name: str = "request_pipeline"):
        self.meter = metrics.get_meter(meter_name)

        self.request_counter: Counter = self.meter.create_counter(
            name="graphql_requests_total",
            description="Total number of GraphQL requests",
            unit="requests",
        )

        self.request_duration: Histogram = self.meter.create_histogram(
            name="graphql_request_duration_seconds",
            description="GraphQL request processing duration in seconds",
            unit="s",
        )

        self.error_counter: Counter = self.meter.create_counter(
            name="graphql_errors_total",
            description="Total number of GraphQL errors by code",
            unit="errors",
        )

        self.active_requests: UpDownCounter = self.meter.create_up_down_counter(
            name="graphql_active_requests",
            description="Number of GraphQL requests in progress",
            unit="requests",
        )

    @staticmethod
    def _get_labels(ctx: RequestContext) -> Dict[str, str]:
        response = ctx.response
        return {
            "operation_name": ctx.operation_name or "<anonymous>",
            "operation_type": ctx.operation.operation.value if ctx.operation else "unknown",
            "status": "error" if response.errors else str(response.status_code),
        }

    def request_did_start(self, ctx: RequestContext) -> RequestListener:
        self.active_requests.add(1)
        return _MetricsListener(self)

    def __repr__(self) -> str:
        return f"OpenTelemetryMetrics(meter={self.meter})"
