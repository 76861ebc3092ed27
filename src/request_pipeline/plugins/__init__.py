"""Plugins for the request pipeline."""

from .plugin import (
    ExecutionListener,
    PipelinePlugin,
    PluginPriority,
    RequestListener,
    sort_plugins,
)
from .logging_plugin import LoggingPlugin
from .monitoring_plugin import MonitoringPlugin
from .response_cache_plugin import ResponseCachePlugin

__all__ = [
    "PipelinePlugin",
    "PluginPriority",
    "RequestListener",
    "ExecutionListener",
    "sort_plugins",
    "LoggingPlugin",
    "MonitoringPlugin",
    "ResponseCachePlugin",
]
