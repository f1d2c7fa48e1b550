"""
SDD MCP Observability Module.

Provides in-process metrics collection for tool calls and error categories.
"""

from sdd_mcp.observability.metrics import MetricsStore, ToolMetrics, get_metrics_store

__all__ = ["MetricsStore", "ToolMetrics", "get_metrics_store"]
