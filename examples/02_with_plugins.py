"""
Plugin System Examples

Demonstrates built-in plugins and writing a custom plugin with request hooks.
"""

import asyncio
import logging
import time

from graphql import build_schema

from request_pipeline import (
    GraphQLResponse,
    LoggingPlugin,
    MonitoringPlugin,
    PipelineConfig,
    PipelinePlugin,
    PluginPriority,
    RequestListener,
    RequestPipeline,
    ResponseCachePlugin,
)

# Configure logging to see plugin output
logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')

schema = build_schema("""
type Query {
    now: Float
    maintenance: Boolean
}
""")

root_value = {"now": lambda info: time.time(), "maintenance": lambda info: False}


class TimingListener(RequestListener):

    async def parsing_did_start(self, ctx):
        started = time.perf_counter()

        async def parsing_did_end(error):
            ctx.metadata['parse_time'] = time.perf_counter() - started

        return parsing_did_end

    async def will_send_response(self, ctx):
        parse_time = ctx.metadata.get('parse_time')
        if parse_time is not None:
            print(f"  parsed in {parse_time * 1000:.3f} ms")


class TimingPlugin(PipelinePlugin):
    """Reports parse time for every request."""

    def request_did_start(self, ctx):
        return TimingListener()


class MaintenanceListener(RequestListener):

    async def response_for_operation(self, ctx):
        if ctx.operation_name == "Maintenance":
            return GraphQLResponse(data={"maintenance": True})
        return None


class MaintenancePlugin(PipelinePlugin):
    """Answers the Maintenance operation without executing it."""

    priority = PluginPriority.HIGH

    def request_did_start(self, ctx):
        return MaintenanceListener()


async def with_builtin_plugins():
    print("\n=== Built-in plugins ===")

    cache = ResponseCachePlugin(ttl=60)
    monitoring = MonitoringPlugin()
    pipeline = RequestPipeline(
        schema,
        PipelineConfig.create(root_value=root_value),
        plugins=[LoggingPlugin(), monitoring, cache],
    )
    print(f"Plugin order: {pipeline.get_plugins_order()}")

    first = await pipeline.execute_operation("query Now { now }")
    second = await pipeline.execute_operation("query Now { now }")
    print(f"Cached: {first.data == second.data}")

    metrics = await monitoring.get_metrics()
    print(f"Total requests: {metrics['total_requests']}")
    print(f"Response cache hits: {metrics['response_cache_hits']}")
    print(f"Cache stats: {await cache.get_stats()}")


async def with_custom_plugins():
    print("\n=== Custom plugins ===")

    pipeline = RequestPipeline(
        schema,
        PipelineConfig.create(root_value=root_value),
        plugins=[TimingPlugin(), MaintenancePlugin()],
    )

    response = await pipeline.execute_operation("query Maintenance { maintenance }")
    print(f"Short-circuit response: {response.data}")

    response = await pipeline.execute_operation("query Now { now }")
    print(f"Executed response: {response.data}")


async def main():
    await with_builtin_plugins()
    await with_custom_plugins()


if __name__ == "__main__":
    asyncio.run(main())
