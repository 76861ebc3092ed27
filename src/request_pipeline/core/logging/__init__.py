"""
Логирование запросов pipeline.

PipelineConfig.logging включает запись начала и завершения каждого
запроса; request id попадает в записи как correlation_id.

Example:
    >>> config = PipelineConfig(logging=LoggingConfig.create(format="json", slow_request_ms=500))
    >>> pipeline = RequestPipeline(schema, config)
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import PipelineLogger, get_logger, configure_logging
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)
from .handlers import build_handlers, create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "PipelineLogger",
    "get_logger",
    "configure_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    # Handlers
    "build_handlers",
    "create_console_handler",
    "create_file_handler",
]
