"""
Настройки логирования запросов pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_MAX_BYTES = 10 * 1024 * 1024


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Логирование каждого GraphQL запроса (``PipelineConfig.logging``).

    Pipeline пишет запись в начале и в конце запроса; request id
    подставляется как correlation_id во все записи внутри запроса.

    Attributes:
        level, format: Уровень и формат вывода (json / text / colored)
        enable_console / enable_file: Куда писать (stdout, файл с ротацией)
        file_path: Файл лога, обязателен при enable_file
        max_bytes, backup_count: Ротация файла
        enable_correlation_id: Добавлять request id в записи
        log_variables: Писать variables запроса (чувствительные маскируются)
        log_query: Писать текст запроса, обрезанный до max_query_length
        slow_request_ms: Порог медленного запроса; такие запросы пишутся как WARNING
        extra_fields: Поля, добавляемые к каждой записи (service, env, ...)

    Example:
        >>> LoggingConfig.create(level="DEBUG", format="json", slow_request_ms=500)
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = DEFAULT_MAX_BYTES
    backup_count: int = 5
    enable_correlation_id: bool = True
    log_variables: bool = False
    log_query: bool = False
    max_query_length: int = 1000
    slow_request_ms: Optional[float] = None
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.backup_count < 0:
            raise ValueError("backup_count must be non-negative")
        if self.max_query_length <= 0:
            raise ValueError("max_query_length must be positive")
        if self.slow_request_ms is not None and self.slow_request_ms <= 0:
            raise ValueError("slow_request_ms must be positive")

    @classmethod
    def create(
        cls,
        level: str = "INFO",
        format: str = "text",
        extra_fields: Optional[Dict[str, Any]] = None,
        **options: Any
    ) -> "LoggingConfig":
        """
        Конструктор из строковых значений (env, файлы конфигурации).

        Регистр level и format не важен; остальные параметры передаются как есть.

        Example:
            >>> LoggingConfig.create(level="debug", format="JSON", enable_file=True,
            ...                      file_path="/var/log/graphql.log")
        """
        return cls(
            level=LogLevel(level.upper()),
            format=LogFormat(format.lower()),
            extra_fields=extra_fields or {},
            **options
        )

    def is_slow(self, duration_ms: float) -> bool:
        return self.slow_request_ms is not None and duration_ms >= self.slow_request_ms

    def truncate_query(self, query: Optional[str]) -> Optional[str]:
        if query is None or len(query) <= self.max_query_length:
            return query
        return query[:self.max_query_length] + "..."
