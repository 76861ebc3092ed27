# src/request_pipeline/plugins/plugin.py
"""
Контракт плагинов pipeline.

Плагин вызывается один раз на запрос (``request_did_start``) и может вернуть
RequestListener. Все хуки listener'а опциональны: отсутствующий хук (None)
просто не участвует в рассылке. Хуки могут быть обычными функциями или
корутинами.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence

if TYPE_CHECKING:
    from ..core.context import RequestContext


class PluginPriority:
    """
    Константы приоритетов для плагинов.

    Плагины с меньшим приоритетом получают хуки раньше.
    При равном приоритете сохраняется порядок регистрации.

    Example:
        >>> class MyCachePlugin(PipelinePlugin):
        ...     priority = PluginPriority.CACHE  # response_for_operation раньше остальных
        ...
        >>> class MyLoggingPlugin(PipelinePlugin):
        ...     priority = PluginPriority.LAST  # начало фазы видит последним, конец - первым
    """
    FIRST = 0       # Выполняется первым (tracing)
    CACHE = 10      # Кэш ответов (short-circuit до выполнения)
    HIGH = 25       # Высокий приоритет
    NORMAL = 50     # Обычный приоритет (по умолчанию для кастомных плагинов)
    LOW = 75        # Низкий приоритет
    LAST = 100      # Выполняется последним (Logging, Monitoring)


class ExecutionListener:
    """
    Хуки фазы выполнения.

    Attributes:
        will_resolve_field: (source, args, context_value, info) -> did_resolve_field | None
            Синхронный хук, вызывается для каждого поля.
        execution_did_end: (error | None) -> None
            Вызывается после выполнения, в обратном порядке.
    """

    will_resolve_field: Optional[Callable[..., Optional[Callable[..., None]]]] = None
    execution_did_end: Optional[Callable[..., Any]] = None


class RequestListener:
    """
    Хуки одного запроса. Переопределяйте только нужные.

    Example:
        >>> class TimingListener(RequestListener):
        ...     async def parsing_did_start(self, ctx):
        ...         started = time.time()
        ...
        ...         async def parsing_did_end(error):
        ...             ctx.metadata['parse_time'] = time.time() - started
        ...
        ...         return parsing_did_end
    """

    # (ctx) -> None
    did_resolve_source: Optional[Callable[..., Any]] = None
    # (ctx) -> did_end(error | None) | None
    parsing_did_start: Optional[Callable[..., Any]] = None
    # (ctx) -> did_end(errors | None) | None
    validation_did_start: Optional[Callable[..., Any]] = None
    # (ctx) -> None; исключение прерывает запрос
    did_resolve_operation: Optional[Callable[..., Any]] = None
    # (ctx) -> GraphQLResponse | None; первый не-None ответ пропускает выполнение
    response_for_operation: Optional[Callable[..., Any]] = None
    # (ctx) -> ExecutionListener | None
    execution_did_start: Optional[Callable[..., Any]] = None
    # (ctx) -> None; ошибки в ctx.errors
    did_encounter_errors: Optional[Callable[..., Any]] = None
    # (ctx) -> None; ответ в ctx.response, ровно один раз на запрос
    will_send_response: Optional[Callable[..., Any]] = None


class PipelinePlugin(ABC):
    """
    Базовый класс для всех плагинов pipeline.

    Attributes:
        priority: Приоритет плагина (меньше = раньше).
                 По умолчанию NORMAL (50). Используйте PluginPriority константы.
    """

    # Class attribute для приоритета (можно переопределить в подклассах)
    priority: int = PluginPriority.NORMAL

    @abstractmethod
    def request_did_start(self, ctx: 'RequestContext') -> Optional[RequestListener]:
        """
        Вызывается один раз в начале каждого запроса.

        Returns:
            RequestListener для этого запроса или None
        """
        pass


def sort_plugins(plugins: Sequence[PipelinePlugin]) -> List[PipelinePlugin]:
    """Сортировка по priority; sorted() стабилен, порядок регистрации сохраняется."""
    return sorted(plugins, key=lambda p: getattr(p, 'priority', PluginPriority.NORMAL))
