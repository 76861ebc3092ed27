"""
OpenTelemetry integration for graphql-request-pipeline.

Requires opentelemetry-api and opentelemetry-sdk to be installed.

Installation:
    pip install graphql-request-pipeline[otel]

Example:
    >>> from opentelemetry import trace
    >>> from opentelemetry.sdk.trace import TracerProvider
    >>> from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
    >>>
    >>> provider = TracerProvider()
    >>> provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    >>> trace.set_tracer_provider(provider)
    >>>
    >>> from request_pipeline.contrib.opentelemetry import OpenTelemetryPlugin
    >>> pipeline = RequestPipeline(schema, plugins=[OpenTelemetryPlugin()])
"""

# Check if OpenTelemetry is installed
try:
    import opentelemetry  # noqa: F401
except ImportError as e:
    raise ImportError(
        "OpenTelemetry support requires opentelemetry-api and opentelemetry-sdk. "
        "Install with: pip install graphql-request-pipeline[otel]"
    ) from e

from .plugin import OpenTelemetryPlugin
from .metrics import OpenTelemetryMetrics

__all__ = [
    "OpenTelemetryPlugin",
    "OpenTelemetryMetrics",
]
