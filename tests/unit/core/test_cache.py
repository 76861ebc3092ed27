"""Тесты key-value хранилищ."""

import time
from unittest.mock import patch

import pytest

from request_pipeline import InMemoryKeyValueCache, KeyValueCache, PrefixingKeyValueCache


class TestInMemoryKeyValueCache:

    @pytest.mark.asyncio
    async def test_set_get(self):
        cache = InMemoryKeyValueCache()

        await cache.set("k", "v")

        assert await cache.get("k") == "v"
        assert "k" in cache
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_missing_key(self):
        assert await InMemoryKeyValueCache().get("missing") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self):
        cache = InMemoryKeyValueCache()
        now = time.time()

        with patch("request_pipeline.core.cache.time.time", return_value=now):
            await cache.set("k", "v", ttl=10)

        with patch("request_pipeline.core.cache.time.time", return_value=now + 5):
            assert await cache.get("k") == "v"

        with patch("request_pipeline.core.cache.time.time", return_value=now + 10):
            assert await cache.get("k") is None

        assert "k" not in cache

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = InMemoryKeyValueCache()
        await cache.set("k", "v")

        await cache.delete("k")
        await cache.delete("k")

        assert await cache.get("k") is None

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryKeyValueCache(), KeyValueCache)


class TestPrefixingKeyValueCache:

    @pytest.mark.asyncio
    async def test_prefixes_keys(self):
        inner = InMemoryKeyValueCache()
        cache = PrefixingKeyValueCache(inner, "apq:")

        await cache.set("abc", "{ hello }", ttl=60)

        assert await inner.get("apq:abc") == "{ hello }"
        assert await cache.get("abc") == "{ hello }"
        assert await inner.get("abc") is None

    def test_repr(self):
        assert "apq:" in repr(PrefixingKeyValueCache(InMemoryKeyValueCache(), "apq:"))
