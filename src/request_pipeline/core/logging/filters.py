"""
Фильтры логгера запросов: correlation id и постоянные поля.

Correlation id хранится в ContextVar: у каждой asyncio задачи (запроса)
своё значение, конкурентные запросы не видят чужой id.
"""

import contextvars
import logging
from typing import Any, Dict, Optional

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_pipeline_correlation_id", default=None
)


def set_correlation_id(correlation_id: str) -> contextvars.Token:
    """Привязать id к текущему контексту; token нужен для clear_correlation_id."""
    return _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def clear_correlation_id(token: Optional[contextvars.Token] = None) -> None:
    """
    Сбросить id. С token восстанавливается предыдущее значение
    (вложенные bind), без него id становится None.
    """
    if token is not None:
        _correlation_id.reset(token)
    else:
        _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Добавляет ``record.correlation_id``, если id привязан."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = _correlation_id.get()
        if correlation_id:
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Постоянные поля для всех записей (service, environment, ...).

    Поля самой записи имеют приоритет.

    Example:
        >>> ExtraFieldsFilter({"service": "graphql-gateway", "environment": "production"})
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
