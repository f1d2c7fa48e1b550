"""Tests for observability metrics module."""

from sdd_mcp.observability.metrics import MetricsStore, get_metrics_store


class TestToolMetrics:
    """Tests for tool-level metrics."""

    def test_record_latency(self):
        store = MetricsStore()
        store.record_tool_call("sdd_create_stub", 50.0, success=True)
        store.record_tool_call("sdd_create_stub", 100.0, success=True)
        store.record_tool_call("sdd_create_stub", 150.0, success=False)

        summary = store.get_summary()
        tool_metrics = summary["tools"]["sdd_create_stub"]

        assert tool_metrics["call_count"] == 3
        assert tool_metrics["success_count"] == 2
        assert tool_metrics["p50_ms"] == 100.0
        assert tool_metrics["max_ms"] == 150.0
        assert tool_metrics["last_called"] is not None

    def test_record_tool_error(self):
        store = MetricsStore()
        store.record_tool_error("sdd_generate_contract", "ValidationError")
        store.record_tool_error("sdd_generate_contract", "ValidationError")
        store.record_tool_error("sdd_generate_contract", "Timeout")

        errors = store.get_tool_metrics("sdd_generate_contract")["errors"]

        assert errors["ValidationError"] == 2
        assert errors["Timeout"] == 1
        assert store.get_error_count("ValidationError") == 2

    def test_global_errors(self):
        store = MetricsStore()
        store.record_error("NotFound")
        store.record_error("NotFound")
        store.record_error("InvalidInput")

        summary = store.get_summary()
        assert summary["global_errors"]["NotFound"] == 2
        assert summary["global_errors"]["InvalidInput"] == 1

    def test_unknown_tool_has_no_metrics(self):
        assert MetricsStore().get_tool_metrics("missing") is None


class TestMetricsSummary:
    """Tests for metrics summary structure."""

    def test_call_counters(self):
        store = MetricsStore()
        store.record_tool_call("a", 1.0, success=True)
        store.record_tool_call("b", 1.0, success=False)

        calls = store.get_summary()["calls"]

        assert calls == {"total": 2, "failed": 1, "succeeded": 1}

    def test_summary_keys(self):
        summary = MetricsStore().get_summary()

        assert set(summary) == {"uptime_seconds", "collected_at", "calls", "tools", "global_errors"}

    def test_reset(self):
        store = MetricsStore()
        store.record_tool_call("a", 1.0, success=True)
        store.record_error("NotFound")

        store.reset()

        summary = store.get_summary()
        assert summary["tools"] == {}
        assert summary["global_errors"] == {}
        assert summary["calls"]["total"] == 0

    def test_singleton(self):
        assert get_metrics_store() is get_metrics_store()
