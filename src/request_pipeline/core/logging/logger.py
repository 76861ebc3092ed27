"""
Логгер запросов pipeline.

Обёртка над ``logging.Logger``: handlers из LoggingConfig, keyword-поля как
структурированные ``extra``, маскирование чувствительных значений и
готовые записи начала и завершения GraphQL запроса.
"""

import contextlib
import contextvars
import logging
import time
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from .config import LoggingConfig
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    clear_correlation_id,
    set_correlation_id,
)
from .formatters import get_formatter
from .handlers import build_handlers
from ...utils.sanitizer import mask_sensitive_data

if TYPE_CHECKING:
    from ..context import GraphQLResponse, RequestContext

DEFAULT_LOGGER_NAME = "request_pipeline.requests"


class PipelineLogger:
    """
    Логгер, который RequestPipeline создаёт при ``PipelineConfig.logging``.

    Example:
        >>> logger = PipelineLogger(LoggingConfig.create(level="DEBUG", format="json"))
        >>> with logger.bind(ctx.request_id):
        ...     logger.info("Cache miss", query_hash=ctx.query_hash)
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = DEFAULT_LOGGER_NAME):
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        level = getattr(logging, self.config.level.value)

        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False

        # повторная инициализация с тем же именем заменяет handlers
        for handler in self._logger.handlers[:]:
            self._logger.removeHandler(handler)
            handler.close()

        filters = []
        if self.config.enable_correlation_id:
            filters.append(CorrelationIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)
        for handler in build_handlers(self.config, level, formatter, filters):
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    @contextlib.contextmanager
    def bind(self, request_id: str) -> Iterator[None]:
        """Все записи внутри блока получают correlation_id = request_id."""
        token: Optional[contextvars.Token] = set_correlation_id(request_id)
        try:
            yield
        finally:
            clear_correlation_id(token)

    # ==================== Запросы ====================

    def request_started(self, ctx: 'RequestContext') -> None:
        request = ctx.request
        fields: Dict[str, Any] = dict(
            method=request.http.method if request.http else None,
            operation_name=request.operation_name,
            persisted_query="persistedQuery" in (request.extensions or {}),
        )
        if self.config.log_query and request.query:
            fields["query"] = self.config.truncate_query(request.query)
        self.info("GraphQL request started", **fields)

    def request_completed(self, ctx: 'RequestContext', response: 'GraphQLResponse') -> None:
        """
        Итоговая запись запроса.

        INFO для успешных, WARNING для ответов с ошибками и медленных
        запросов (slow_request_ms).
        """
        duration_ms = round((time.time() - ctx.metrics.start_time) * 1000, 2)
        fields: Dict[str, Any] = dict(
            operation_name=ctx.operation_name,
            query_hash=ctx.query_hash,
            status_code=response.status_code,
            duration_ms=duration_ms,
            persisted_query_hit=ctx.metrics.persisted_query_hit,
        )
        if self.config.log_variables and ctx.request.variables:
            fields["variables"] = ctx.request.variables

        if response.errors:
            fields["error_codes"] = [e.get("extensions", {}).get("code") for e in response.errors]
            self.warning("GraphQL request completed with errors", **fields)
        elif self.config.is_slow(duration_ms):
            self.warning("GraphQL request completed slowly", **fields)
        else:
            self.info("GraphQL request completed", **fields)

    # ==================== Уровни ====================

    def _log(self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, message, extra=mask_sensitive_data(fields), exc_info=exc_info)

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        """
        Example:
            >>> logger.info("Persisted query registered", query_hash="ab12...")
        """
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._log(logging.CRITICAL, message, fields)

    def exception(self, message: str, **fields: Any) -> None:
        """ERROR с текущим traceback; вызывать из except."""
        self._log(logging.ERROR, message, fields, exc_info=True)

    def close(self) -> None:
        """Сбросить и закрыть handlers. Повторный вызов ничего не делает."""
        if self._closed:
            return

        for handler in self._logger.handlers[:]:
            with contextlib.suppress(OSError, ValueError):
                handler.flush()
                handler.close()
            self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_logger: Optional[PipelineLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> PipelineLogger:
    """Глобальный логгер; ``config`` учитывается только при первом вызове."""
    global _default_logger

    if _default_logger is None:
        _default_logger = PipelineLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> PipelineLogger:
    """Заменить глобальный логгер новым (старый закрывается)."""
    global _default_logger
    if _default_logger is not None:
        _default_logger.close()
    _default_logger = PipelineLogger(config)
    return _default_logger
