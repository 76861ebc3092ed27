"""
Contrib modules for graphql-request-pipeline.

Optional integrations with third-party libraries; each one is loaded only
when its extra is installed.

Available contrib modules:
- opentelemetry: OpenTelemetry tracing and metrics plugins
"""
