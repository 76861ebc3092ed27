"""
Query identity resolution: canonical query text and its hash.

Implements the automatic persisted query (APQ) protocol. The client may
send only ``extensions.persistedQuery.sha256Hash``; the text is then looked
up in the persisted query store. Writes to the store are deferred until the
pipeline has resolved the operation (see ``QueryIdentityResolver.register``).
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .cache import PrefixingKeyValueCache
from .config import PersistedQueriesConfig
from .context import GraphQLRequest
from .exceptions import (
    BadRequestError,
    PersistedQueryNotFoundError,
    PersistedQueryNotSupportedError,
    ProtocolError,
)
from .utils import spawn_background_task

logger = logging.getLogger(__name__)

APQ_CACHE_PREFIX = "apq:"
SUPPORTED_PERSISTED_QUERY_VERSION = 1


def compute_query_hash(query: str) -> str:
    """
    SHA-256 hex digest of the query text.

    Example:
        >>> len(compute_query_hash("{ hello }"))
        64
    """
    return hashlib.sha256(query.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class QueryIdentity:
    """Result of identity resolution."""

    query_hash: str
    source: str
    persisted_query_hit: bool = False
    persisted_query_register: bool = False


class QueryIdentityResolver:
    """Resolves ``(query_hash, source)`` for a request.

    Rules, in order:
        1. persistedQuery without a configured store -> PersistedQueryNotSupportedError
        2. unsupported version -> ProtocolError
        3. hash only -> look up text; missing -> PersistedQueryNotFoundError
        4. hash + text -> hash must match the text, then mark for registration
        5. text only -> hash the text
        6. nothing -> BadRequestError
    """

    def __init__(self, persisted_queries: Optional[PersistedQueriesConfig] = None):
        self.persisted_queries = persisted_queries
        self._cache = (
            PrefixingKeyValueCache(persisted_queries.cache, APQ_CACHE_PREFIX)
            if persisted_queries is not None
            else None
        )

    async def resolve(self, request: GraphQLRequest) -> QueryIdentity:
        query = request.query
        persisted_query = (request.extensions or {}).get("persistedQuery")

        if persisted_query is None:
            if query:
                return QueryIdentity(query_hash=compute_query_hash(query), source=query)
            raise BadRequestError(
                "GraphQL operations must contain a non-empty `query` or a `persistedQuery` extension."
            )

        if self._cache is None:
            raise PersistedQueryNotSupportedError()

        query_hash = self._validate_extension(persisted_query)

        if query is None:
            source = await self._lookup(query_hash)
            if not source:
                raise PersistedQueryNotFoundError()
            return QueryIdentity(query_hash=query_hash, source=source, persisted_query_hit=True)

        # Хэш должен точно совпадать с SHA-256 текста, иначе новый запрос
        # можно было бы привязать к чужому существующему хэшу.
        if compute_query_hash(query) != query_hash:
            raise ProtocolError("provided sha does not match query")

        return QueryIdentity(query_hash=query_hash, source=query, persisted_query_register=True)

    def register(self, query_hash: str, source: str):
        """
        Fire-and-forget write of ``hash -> text`` with the configured ttl.

        Returns the background task, or None when APQ is disabled.
        """
        if self._cache is None:
            return None

        async def _write() -> None:
            await self._cache.set(query_hash, source, ttl=self.persisted_queries.ttl)

        return spawn_background_task(_write(), "Could not store persisted query.", logger)

    @staticmethod
    def _validate_extension(persisted_query: Any) -> str:
        if not isinstance(persisted_query, Mapping):
            raise BadRequestError("The persistedQuery extension must be an object.")

        version = persisted_query.get("version")
        # bool - подкласс int, 1.0 == 1; оба не являются версией протокола
        if type(version) is not int or version != SUPPORTED_PERSISTED_QUERY_VERSION:
            raise ProtocolError("Unsupported persisted query version")

        query_hash = persisted_query.get("sha256Hash")
        if not isinstance(query_hash, str) or not query_hash:
            raise ProtocolError("persistedQuery extension must provide a sha256Hash")

        return query_hash

    async def _lookup(self, query_hash: str) -> Optional[str]:
        try:
            return await self._cache.get(query_hash)
        except Exception as e:
            logger.warning(
                "An error occurred while attempting to read from the persisted query store. %s", e
            )
            return None
