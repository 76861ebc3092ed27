"""
Система конфигурации для GraphQL pipeline.

Все конфиги immutable (frozen dataclasses): один конфиг разделяется
всеми конкурентными запросами.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TYPE_CHECKING

from .cache import KeyValueCache
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .logging import LoggingConfig

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# PERSISTED QUERIES CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class PersistedQueriesConfig:
    """
    Конфигурация automatic persisted queries (APQ).

    Args:
        cache: Хранилище hash -> текст запроса
        ttl: Время жизни записи (сек), None = без ограничения

    Examples:
        >>> PersistedQueriesConfig(cache=InMemoryKeyValueCache())
        >>> PersistedQueriesConfig(cache=redis_cache, ttl=900)
    """
    cache: KeyValueCache
    ttl: Optional[float] = None

    def __post_init__(self):
        """Валидация."""
        if self.cache is None:
            raise ConfigurationError("persisted queries require a cache")
        if self.ttl is not None and self.ttl <= 0:
            raise ValueError("ttl must be positive")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class PipelineConfig:
    """
    Главная конфигурация RequestPipeline.

    Args:
        persisted_queries: APQ хранилище (None = APQ не поддерживается)
        document_store: Кэш распарсенных и провалидированных документов
        validation_rules: Дополнительные правила валидации (к specified_rules)
        parse_options: kwargs для парсера (например no_location, max_tokens)
        root_value: Root value или callable(document) -> root value
        field_resolver: Кастомный default field resolver
        executor: Кастомный executor(ctx) вместо graphql.execute
        format_error: Хук форматирования ошибки (formatted, error) -> dict | None
        format_response: Хук форматирования ответа (response, ctx) -> response | None
        debug: Включать stacktrace в extensions ошибок
        protocol_error_status_code: HTTP статус для ProtocolError
        logging: Конфигурация логирования (None = без логирования запросов)

    Examples:
        >>> config = PipelineConfig()
        >>> config = PipelineConfig.create(persisted_queries=InMemoryKeyValueCache(), debug=True)
    """
    persisted_queries: Optional[PersistedQueriesConfig] = None
    document_store: Optional[KeyValueCache] = None
    validation_rules: Tuple[Any, ...] = ()
    parse_options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    root_value: Any = None
    field_resolver: Optional[Callable[..., Any]] = None
    executor: Optional[Callable[..., Any]] = None
    format_error: Optional[Callable[..., Any]] = None
    format_response: Optional[Callable[..., Any]] = None
    debug: bool = False
    protocol_error_status_code: int = 400
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Валидация и заморозка изменяемых коллекций."""
        if isinstance(self.parse_options, dict):
            object.__setattr__(self, 'parse_options', MappingProxyType(dict(self.parse_options)))
        if not isinstance(self.validation_rules, tuple):
            object.__setattr__(self, 'validation_rules', tuple(self.validation_rules))

        if not 100 <= self.protocol_error_status_code < 600:
            raise ValueError("protocol_error_status_code must be a valid HTTP status")
        if self.executor is not None and not callable(self.executor):
            raise ConfigurationError("executor must be callable")
        if self.format_error is not None and not callable(self.format_error):
            raise ConfigurationError("format_error must be callable")
        if self.format_response is not None and not callable(self.format_response):
            raise ConfigurationError("format_response must be callable")

    @classmethod
    def create(
        cls,
        persisted_queries: Optional[KeyValueCache] = None,
        persisted_query_ttl: Optional[float] = None,
        document_store: Optional[KeyValueCache] = None,
        debug: bool = False,
        logging: Optional['LoggingConfig'] = None,
        **kwargs
    ) -> 'PipelineConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            persisted_queries: Хранилище APQ (оборачивается в PersistedQueriesConfig)
            persisted_query_ttl: TTL записей APQ (сек)
            document_store: Кэш документов
            debug: Stacktrace в ошибках
            logging: Конфигурация логирования

        Returns:
            PipelineConfig instance

        Examples:
            >>> config = PipelineConfig.create(persisted_queries=cache, persisted_query_ttl=300)
        """
        apq_cfg = None
        if persisted_queries is not None:
            apq_cfg = PersistedQueriesConfig(cache=persisted_queries, ttl=persisted_query_ttl)

        return cls(
            persisted_queries=apq_cfg,
            document_store=document_store,
            debug=debug,
            logging=logging,
            **kwargs
        )

    def with_persisted_queries(
        self,
        cache: Optional[KeyValueCache],
        ttl: Optional[float] = None
    ) -> 'PipelineConfig':
        """
        Создать новый конфиг с другим APQ хранилищем.

        Example:
            >>> new_config = config.with_persisted_queries(None)  # выключить APQ
        """
        apq_cfg = PersistedQueriesConfig(cache=cache, ttl=ttl) if cache is not None else None
        return replace(self, persisted_queries=apq_cfg)

    def with_document_store(self, document_store: Optional[KeyValueCache]) -> 'PipelineConfig':
        """Создать новый конфиг с другим кэшем документов."""
        return replace(self, document_store=document_store)

    def with_debug(self, debug: bool = True) -> 'PipelineConfig':
        """Создать новый конфиг с изменённым debug."""
        return replace(self, debug=debug)

    def to_dict(self) -> Dict[str, Any]:
        """Сводка конфигурации для логов (без объектов хранилищ)."""
        return {
            "persisted_queries": self.persisted_queries is not None,
            "persisted_query_ttl": self.persisted_queries.ttl if self.persisted_queries else None,
            "document_store": self.document_store is not None,
            "validation_rules": len(self.validation_rules),
            "custom_executor": self.executor is not None,
            "debug": self.debug,
            "protocol_error_status_code": self.protocol_error_status_code,
        }
