# src/request_pipeline/plugins/response_cache_plugin.py
"""
Плагин кэширования ответов на query операции.

Хит отдаётся из response_for_operation (выполнение пропускается),
запись происходит в will_send_response.
"""

import asyncio
import copy
import hashlib
import json
import logging
import time
from collections import OrderedDict
from typing import Any, Dict, Optional, Set

from graphql import OperationType

from ..core.context import GraphQLResponse, RequestContext
from .plugin import PipelinePlugin, PluginPriority, RequestListener

logger = logging.getLogger(__name__)

CACHE_KEY_METADATA = "response_cache_key"


class _ResponseCacheListener(RequestListener):

    def __init__(self, plugin: 'ResponseCachePlugin'):
        self.plugin = plugin

    async def response_for_operation(self, ctx: RequestContext) -> Optional[GraphQLResponse]:
        if ctx.operation is None or ctx.operation.operation != OperationType.QUERY:
            return None

        cache_key = self.plugin.generate_cache_key(ctx)
        cached = await self.plugin._get_from_cache(cache_key)

        if cached is None:
            ctx.metadata[CACHE_KEY_METADATA] = cache_key
            logger.debug(f"Response cache MISS for {ctx.operation_name or '<anonymous>'}")
            return None

        ctx.metrics.response_cache_hit = True
        logger.debug(f"Response cache HIT for {ctx.operation_name or '<anonymous>'}")
        return GraphQLResponse(
            data=copy.deepcopy(cached["data"]),
            extensions=copy.deepcopy(cached["extensions"]),
        )

    async def will_send_response(self, ctx: RequestContext) -> None:
        cache_key = ctx.metadata.get(CACHE_KEY_METADATA)
        if cache_key is None or ctx.metrics.response_cache_hit:
            return

        response = ctx.response
        # Кэшируем только полные успешные ответы
        if response.errors or response.data is None or response.status_code != 200:
            return

        await self.plugin._put_to_cache(cache_key, {
            "data": copy.deepcopy(response.data),
            "extensions": copy.deepcopy(response.extensions),
        })


class ResponseCachePlugin(PipelinePlugin):
    """
    In-memory TTL/LRU кэш ответов на query операции.

    Priority: CACHE (10) - должен отдать ответ раньше остальных
    response_for_operation хуков.

    Ключ: хэш запроса, имя операции, переменные и значимые заголовки.
    Мутации и ответы с ошибками не кэшируются.

    Example:
        >>> cache = ResponseCachePlugin(ttl=60, max_size=500, vary_headers={"Authorization"})
        >>> pipeline = RequestPipeline(schema, plugins=[cache])
        >>> await pipeline.execute_operation("{ hello }")  # miss
        >>> await pipeline.execute_operation("{ hello }")  # hit, резолверы не вызываются
        >>> await cache.get_stats()
        {'hits': 1, 'misses': 1, 'hit_rate': 50.0, 'size': 1, 'max_size': 500}
    """

    priority = PluginPriority.CACHE

    def __init__(
        self,
        ttl: float = 300,
        max_size: int = 1000,
        vary_headers: Optional[Set[str]] = None,
    ):
        """
        Args:
            ttl: Time to live записи в секундах (по умолчанию 5 минут)
            max_size: Максимальное количество записей
            vary_headers: Заголовки запроса, включаемые в ключ (например Authorization)
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.ttl = ttl
        self.max_size = max_size
        self.vary_headers = {h.lower() for h in (vary_headers or set())}
        self.cache: 'OrderedDict[str, Dict[str, Any]]' = OrderedDict()  # LRU ordering
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    def request_did_start(self, ctx: RequestContext) -> RequestListener:
        return _ResponseCacheListener(self)

    def generate_cache_key(self, ctx: RequestContext) -> str:
        """Ключ кэша для запроса с уже разрешённой операцией."""
        headers = ctx.request.http.headers if ctx.request.http else {}
        cache_data = {
            "query_hash": ctx.query_hash,
            "operation_name": ctx.operation_name,
            "variables": ctx.request.variables or {},
            "headers": {name: headers.get(name) for name in sorted(self.vary_headers)},
        }
        cache_str = json.dumps(cache_data, sort_keys=True, default=str)
        return hashlib.sha256(cache_str.encode()).hexdigest()

    async def _get_from_cache(self, cache_key: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            entry = self.cache.get(cache_key)
            if entry is None:
                self._misses += 1
                return None

            if time.time() >= entry["expires_at"]:
                del self.cache[cache_key]
                self._misses += 1
                return None

            # LRU: отметить как недавно использованную
            self.cache.move_to_end(cache_key, last=True)

            self._hits += 1
            return entry["response"]

    async def _put_to_cache(self, cache_key: str, response: Dict[str, Any]) -> None:
        async with self._lock:
            if cache_key not in self.cache and len(self.cache) >= self.max_size:
                self.cache.popitem(last=False)

            self.cache[cache_key] = {
                "response": response,
                "expires_at": time.time() + self.ttl,
            }
            self.cache.move_to_end(cache_key, last=True)

    async def get_stats(self) -> Dict[str, Any]:
        """
        Статистика кэша.

        Returns:
            Dict с hits, misses, hit_rate (%), size, max_size
        """
        async with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0

            return {
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "size": len(self.cache),
                "max_size": self.max_size,
            }

    async def clear(self) -> None:
        """Очистить кэш и счётчики."""
        async with self._lock:
            self.cache.clear()
            self._hits = 0
            self._misses = 0
            logger.info("Response cache cleared")
