"""
Handlers для логгера запросов: stdout и файл с ротацией.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_MAX_BYTES, LoggingConfig


def _attach(handler: logging.Handler, level: int, formatter: logging.Formatter,
            filters: Optional[Sequence[logging.Filter]]) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for log_filter in filters or ():
        handler.addFilter(log_filter)
    return handler


def create_console_handler(
    level: int,
    formatter: logging.Formatter,
    filters: Optional[Sequence[logging.Filter]] = None
) -> logging.StreamHandler:
    """Handler в stdout."""
    return _attach(logging.StreamHandler(sys.stdout), level, formatter, filters)


def create_file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = 5,
    filters: Optional[Sequence[logging.Filter]] = None
) -> RotatingFileHandler:
    """
    Handler в файл; при превышении max_bytes файл ротируется
    (graphql.log -> graphql.log.1 ... graphql.log.<backup_count>).

    Недостающие директории создаются.
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=file_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    return _attach(handler, level, formatter, filters)


def build_handlers(
    config: LoggingConfig,
    level: int,
    formatter: logging.Formatter,
    filters: Optional[Sequence[logging.Filter]] = None
) -> List[logging.Handler]:
    """Все handlers, включённые в ``config``."""
    handlers: List[logging.Handler] = []
    if config.enable_console:
        handlers.append(create_console_handler(level, formatter, filters))
    if config.enable_file and config.file_path:
        handlers.append(create_file_handler(
            config.file_path, level, formatter,
            max_bytes=config.max_bytes,
            backup_count=config.backup_count,
            filters=filters,
        ))
    return handlers
