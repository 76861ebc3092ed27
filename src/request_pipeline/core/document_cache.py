"""
Document cache gateway.

Reads are optimistic (a failure is a miss), writes are fire-and-forget.
The store's own errors never reach the request.
"""

import asyncio
import logging
from typing import Optional

from graphql import DocumentNode

from .cache import KeyValueCache
from .utils import spawn_background_task

logger = logging.getLogger(__name__)


class DocumentCacheGateway:
    """
    Шлюз к кэшу распарсенных и провалидированных документов.

    Ключ - хэш текста запроса.

    Example:
        >>> gateway = DocumentCacheGateway(InMemoryKeyValueCache())
        >>> document = await gateway.get(query_hash)  # None = промах
        >>> gateway.set(query_hash, parsed_document)  # не ждём
    """

    def __init__(self, store: Optional[KeyValueCache] = None):
        self.store = store

    @property
    def enabled(self) -> bool:
        return self.store is not None

    async def get(self, query_hash: str) -> Optional[DocumentNode]:
        if self.store is None:
            return None

        try:
            return await self.store.get(query_hash)
        except Exception as e:
            logger.warning(
                "An error occurred while attempting to read from the document store. %s", e
            )
            return None

    def set(self, query_hash: str, document: DocumentNode) -> Optional[asyncio.Task]:
        if self.store is None:
            return None

        async def _write() -> None:
            await self.store.set(query_hash, document)

        return spawn_background_task(_write(), "Could not store validated document.", logger)
