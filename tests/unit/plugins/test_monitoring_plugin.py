"""Тесты MonitoringPlugin."""

import pytest

from request_pipeline import MonitoringPlugin, ResponseCachePlugin
from request_pipeline.core.identity import compute_query_hash
from request_pipeline.core.utils import drain_background_tasks


@pytest.fixture
def monitoring():
    return MonitoringPlugin(history_size=3)


class TestMonitoringPlugin:

    def test_invalid_history_size(self):
        with pytest.raises(ValueError):
            MonitoringPlugin(history_size=0)

    @pytest.mark.asyncio
    async def test_empty_metrics(self, monitoring):
        metrics = await monitoring.get_metrics()

        assert metrics["total_requests"] == 0
        assert metrics["success_rate"] == 0.0
        assert metrics["min_response_time"] == 0.0

    @pytest.mark.asyncio
    async def test_counts_requests(self, make_pipeline, monitoring):
        pipeline = make_pipeline(plugins=[monitoring])

        await pipeline.execute_operation("query Hello { hello }")
        await pipeline.execute_operation("query Hello { hello }")
        await pipeline.execute_operation("{ hello")
        await pipeline.execute_operation('mutation M { setGreeting(text: "x") }', http_method="GET")

        metrics = await monitoring.get_metrics()
        assert metrics["total_requests"] == 4
        assert metrics["failed_requests"] == 2
        assert metrics["successful_requests"] == 2
        assert metrics["success_rate"] == 50.0
        assert metrics["operation_stats"] == {"Hello": 2, "<anonymous>": 1, "M": 1}
        assert metrics["status_code_stats"] == {200: 3, 405: 1}
        assert metrics["error_code_stats"] == {"GRAPHQL_PARSE_FAILED": 1, "METHOD_NOT_ALLOWED": 1}
        assert metrics["min_response_time"] <= metrics["avg_response_time"] <= metrics["max_response_time"]

    @pytest.mark.asyncio
    async def test_persisted_query_and_cache_hits(self, make_pipeline, apq_store, monitoring):
        pipeline = make_pipeline(
            persisted_queries=apq_store,
            plugins=[ResponseCachePlugin(), monitoring],
        )
        query = "{ hello }"
        extensions = {"persistedQuery": {"version": 1, "sha256Hash": compute_query_hash(query)}}

        await pipeline.execute_operation(query, extensions=extensions)
        await drain_background_tasks()
        await pipeline.execute_operation(extensions=extensions)

        metrics = await monitoring.get_metrics()
        assert metrics["persisted_query_hits"] == 1
        assert metrics["response_cache_hits"] == 1

    @pytest.mark.asyncio
    async def test_history_is_bounded(self, make_pipeline, monitoring):
        pipeline = make_pipeline(plugins=[monitoring])

        for _ in range(5):
            await pipeline.execute_operation("{ hello }")

        history = await monitoring.get_history()
        assert len(history) == 3
        assert set(history[0]) == {
            "request_id", "operation_name", "status_code", "error_codes", "response_time", "timestamp",
        }

    @pytest.mark.asyncio
    async def test_reset(self, make_pipeline, monitoring):
        pipeline = make_pipeline(plugins=[monitoring])
        await pipeline.execute_operation("{ hello }")

        await monitoring.reset()

        metrics = await monitoring.get_metrics()
        assert metrics["total_requests"] == 0
        assert metrics["operation_stats"] == {}
        assert await monitoring.get_history() == []
