# src/request_pipeline/plugins/monitoring_plugin.py
"""
Плагин для сбора метрик GraphQL запросов.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Deque, Dict, List

from ..core.context import RequestContext
from .plugin import PipelinePlugin, PluginPriority, RequestListener

logger = logging.getLogger(__name__)


class _MonitoringListener(RequestListener):

    def __init__(self, plugin: 'MonitoringPlugin'):
        self.plugin = plugin
        self.started = time.perf_counter()

    async def will_send_response(self, ctx: RequestContext) -> None:
        await self.plugin._record(ctx, time.perf_counter() - self.started)


class MonitoringPlugin(PipelinePlugin):
    """
    Плагин мониторинга GraphQL запросов.

    Priority: LAST (100).

    Отслеживает:
    - Общее количество запросов и запросов с ошибками
    - Время обработки (среднее, мин, макс)
    - Статистику по операциям, HTTP статусам и кодам ошибок
    - Попадания в APQ и в кэш ответов

    Example:
        >>> monitoring = MonitoringPlugin(history_size=50)
        >>> pipeline = RequestPipeline(schema, plugins=[monitoring])
        >>> await pipeline.execute_operation("query Hello { hello }")
        >>> metrics = await monitoring.get_metrics()
        >>> metrics['operation_stats']
        {'Hello': 1}
    """

    priority = PluginPriority.LAST

    def __init__(self, history_size: int = 100):
        """
        Args:
            history_size: Максимальный размер истории запросов
        """
        if history_size <= 0:
            raise ValueError("history_size must be positive")

        self._history_size = history_size
        self._lock = asyncio.Lock()

        # Счетчики
        self._total_requests = 0
        self._failed_requests = 0
        self._persisted_query_hits = 0
        self._response_cache_hits = 0
        self._total_response_time = 0.0
        self._min_response_time = float('inf')
        self._max_response_time = 0.0

        # Статистика
        self._operation_stats: Dict[str, int] = {}
        self._status_code_stats: Dict[int, int] = {}
        self._error_code_stats: Dict[str, int] = {}

        # История
        self._request_history: Deque[Dict[str, Any]] = deque(maxlen=history_size)

    def request_did_start(self, ctx: RequestContext) -> RequestListener:
        return _MonitoringListener(self)

    async def _record(self, ctx: RequestContext, response_time: float) -> None:
        response = ctx.response
        operation = ctx.operation_name or "<anonymous>"
        error_codes = [
            (error.extensions or {}).get("code", "INTERNAL_SERVER_ERROR")
            for error in ctx.errors or []
        ]

        async with self._lock:
            self._total_requests += 1
            if response.errors:
                self._failed_requests += 1
            if ctx.metrics.persisted_query_hit:
                self._persisted_query_hits += 1
            if ctx.metrics.response_cache_hit:
                self._response_cache_hits += 1

            self._total_response_time += response_time
            self._min_response_time = min(self._min_response_time, response_time)
            self._max_response_time = max(self._max_response_time, response_time)

            self._operation_stats[operation] = self._operation_stats.get(operation, 0) + 1
            status_code = response.status_code
            self._status_code_stats[status_code] = self._status_code_stats.get(status_code, 0) + 1
            for code in error_codes:
                self._error_code_stats[code] = self._error_code_stats.get(code, 0) + 1

            self._request_history.append({
                'request_id': ctx.request_id,
                'operation_name': ctx.operation_name,
                'status_code': status_code,
                'error_codes': error_codes,
                'response_time': response_time,
                'timestamp': time.time(),
            })

    async def get_metrics(self) -> Dict[str, Any]:
        """
        Получить метрики.

        Returns:
            Dict с метриками:
            - total_requests / failed_requests / successful_requests
            - success_rate: процент запросов без ошибок
            - avg_response_time / min_response_time / max_response_time (сек)
            - persisted_query_hits / response_cache_hits
            - operation_stats / status_code_stats / error_code_stats
        """
        async with self._lock:
            total = self._total_requests
            successful_requests = total - self._failed_requests
            success_rate = (successful_requests / total * 100) if total > 0 else 0.0
            avg_response_time = (self._total_response_time / total) if total > 0 else 0.0
            min_response_time = (
                self._min_response_time if self._min_response_time != float('inf') else 0.0
            )

            return {
                'total_requests': total,
                'failed_requests': self._failed_requests,
                'successful_requests': successful_requests,
                'success_rate': round(success_rate, 2),
                'avg_response_time': round(avg_response_time, 4),
                'min_response_time': round(min_response_time, 4),
                'max_response_time': round(self._max_response_time, 4),
                'persisted_query_hits': self._persisted_query_hits,
                'response_cache_hits': self._response_cache_hits,
                'operation_stats': dict(self._operation_stats),
                'status_code_stats': dict(self._status_code_stats),
                'error_code_stats': dict(self._error_code_stats),
            }

    async def get_history(self) -> List[Dict[str, Any]]:
        """История последних запросов (не больше history_size)."""
        async with self._lock:
            return list(self._request_history)

    async def reset(self) -> None:
        """Сбросить все метрики."""
        async with self._lock:
            self._total_requests = 0
            self._failed_requests = 0
            self._persisted_query_hits = 0
            self._response_cache_hits = 0
            self._total_response_time = 0.0
            self._min_response_time = float('inf')
            self._max_response_time = 0.0
            self._operation_stats.clear()
            self._status_code_stats.clear()
            self._error_code_stats.clear()
            self._request_history.clear()
            logger.info("Monitoring metrics reset")
