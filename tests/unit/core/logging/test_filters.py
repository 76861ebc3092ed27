"""Тесты фильтров логирования."""

import asyncio
import logging

import pytest

from request_pipeline.core.logging import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


def make_record():
    return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)


class TestCorrelationId:

    def teardown_method(self):
        clear_correlation_id()

    def test_set_get_clear(self):
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_token_restores_previous(self):
        set_correlation_id("outer")
        token = set_correlation_id("inner")

        clear_correlation_id(token)

        assert get_correlation_id() == "outer"

    @pytest.mark.asyncio
    async def test_isolated_between_tasks(self):
        seen = {}

        async def handle(request_id):
            set_correlation_id(request_id)
            await asyncio.sleep(0)
            seen[request_id] = get_correlation_id()

        await asyncio.gather(handle("a"), handle("b"), handle("c"))

        assert seen == {"a": "a", "b": "b", "c": "c"}

    def test_filter_adds_id(self):
        set_correlation_id("req-9")
        record = make_record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "req-9"

    def test_filter_without_id(self):
        record = make_record()

        CorrelationIdFilter().filter(record)

        assert not hasattr(record, "correlation_id")


class TestExtraFieldsFilter:

    def test_adds_fields(self):
        record = make_record()

        ExtraFieldsFilter({"service": "graphql", "environment": "test"}).filter(record)

        assert record.service == "graphql"
        assert record.environment == "test"

    def test_does_not_overwrite(self):
        record = make_record()
        record.service = "own"

        ExtraFieldsFilter({"service": "graphql"}).filter(record)

        assert record.service == "own"
