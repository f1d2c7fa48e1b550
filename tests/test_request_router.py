"""
Tests for the request router.
"""

import asyncio
import time

import pytest

from sdd_mcp.core.request_router import ExecutionConfig, RequestRouter
from sdd_mcp.core.tool_registry import ToolStatus
from sdd_mcp.exceptions import ErrorCategory, InvalidInputException, ToolTimeoutException
from sdd_mcp.schemas import ExecutionResult

from conftest import make_record


class TestEchoScenario:

    @pytest.mark.asyncio
    async def test_echo_returns_value(self, registry, router):
        async def echo(args):
            return ExecutionResult.ok(data=args["value"])

        registry.register_tool(make_record(handler=echo))

        result = await router.execute("echo", {"value": "hi"})

        assert result.success is True
        assert result.data == "hi"

    @pytest.mark.asyncio
    async def test_echo_missing_value_is_validation_error(self, registry, router):
        async def echo(args):
            return ExecutionResult.ok(data=args["value"])

        registry.register_tool(make_record(handler=echo))

        result = await router.execute("echo", {})

        assert result.success is False
        assert result.error.category == ErrorCategory.VALIDATION_ERROR
        errors = result.error.details["errors"]
        assert errors[0]["field"] == "value"
        assert errors[0]["expected_type"] == "string"


class TestValidationGate:

    @pytest.mark.asyncio
    async def test_handler_not_invoked_on_invalid_args(self, registry, router):
        calls = {"count": 0}

        async def counting(args):
            calls["count"] += 1
            return args

        registry.register_tool(make_record(handler=counting))

        result = await router.execute("echo", {"other": 1})

        assert result.error.category == ErrorCategory.VALIDATION_ERROR
        assert calls["count"] == 0

    @pytest.mark.asyncio
    async def test_wrong_type_reports_actual_value(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", {"value": 42})

        error = result.error.details["errors"][0]
        assert error["field"] == "value"
        assert error["actual_value"] == 42

    @pytest.mark.asyncio
    async def test_none_args_against_object_schema(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", None)

        assert result.error.category == ErrorCategory.VALIDATION_ERROR
        assert result.error.details["errors"][0]["message"] == "Arguments are required"

    @pytest.mark.asyncio
    async def test_unknown_property_becomes_warning(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", {"value": "x", "extra": True})

        assert result.success is True
        assert any("extra" in w for w in result.metadata.warnings)

    @pytest.mark.asyncio
    async def test_malformed_schema_is_processing_error(self, registry, router):
        registry.register_tool(make_record(input_schema={"type": "not-a-type"}))

        result = await router.execute("echo", {"value": "x"})

        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert "Invalid input schema" in result.error.message


class TestErrorContainment:

    @pytest.mark.asyncio
    async def test_sync_handler_raising(self, registry, router):
        def broken(args):
            raise RuntimeError("sync boom")

        registry.register_tool(make_record(handler=broken))

        result = await router.execute("echo", {"value": "x"})

        assert result.success is False
        assert result.data is None
        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert "sync boom" in result.error.message
        assert result.error.details["exception_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_async_handler_rejecting(self, registry, router):
        async def broken(args):
            await asyncio.sleep(0)
            raise ValueError("async boom")

        registry.register_tool(make_record(handler=broken))

        result = await router.execute("echo", {"value": "x"})

        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert "async boom" in result.error.message

    @pytest.mark.asyncio
    async def test_handler_sdd_exception_keeps_cause(self, registry, router):
        async def broken(args):
            raise InvalidInputException("bad business input")

        registry.register_tool(make_record(handler=broken))

        result = await router.execute("echo", {"value": "x"})

        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert result.error.details["cause_category"] == "InvalidInput"

    @pytest.mark.asyncio
    async def test_sync_handler_runs(self, registry, router):
        def upper(args):
            return {"value": args["value"].upper()}

        registry.register_tool(make_record(handler=upper))

        result = await router.execute("echo", {"value": "x"})

        assert result.data == {"value": "X"}

    @pytest.mark.asyncio
    async def test_failed_envelope_passes_through(self, registry, router):
        async def refusing(args):
            return ExecutionResult.fail(InvalidInputException("nope"))

        registry.register_tool(make_record(handler=refusing))

        result = await router.execute("echo", {"value": "x"})

        assert result.error.category == ErrorCategory.INVALID_INPUT
        assert result.error.tool_name == "echo"

    @pytest.mark.asyncio
    async def test_handler_raising_cancelled_is_contained(self, registry, router):
        async def cancelled(args):
            raise asyncio.CancelledError()

        registry.register_tool(make_record(handler=cancelled))

        result = await router.execute("echo", {"value": "x"})

        assert result.success is False
        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert result.error.details["exception_type"] == "CancelledError"
        assert router.execution_log.get_by_tool("echo")[0].status == "error"

    @pytest.mark.asyncio
    async def test_handler_downstream_timeout_is_processing_error(self, registry, router):
        async def downstream(args):
            raise ToolTimeoutException("downstream", 5)

        registry.register_tool(make_record(handler=downstream))

        result = await router.execute("echo", {"value": "x"})

        assert result.error.category == ErrorCategory.PROCESSING_ERROR
        assert result.error.details["cause_category"] == "Timeout"

    @pytest.mark.asyncio
    async def test_shared_result_is_not_mutated(self, registry, router):
        cached = ExecutionResult.ok(data="cached")

        async def from_cache(args):
            return cached

        registry.register_tool(make_record(handler=from_cache))

        first = await router.execute("echo", {"value": "x"})
        second = await router.execute("echo", {"value": "y"})

        assert first is not cached
        assert second is not first
        assert first.metadata.request_id != second.metadata.request_id
        assert cached.metadata.request_id is None
        assert first.data == second.data == "cached"


class TestResolution:

    @pytest.mark.asyncio
    async def test_empty_name(self, router):
        result = await router.execute("", {})

        assert result.error.category == ErrorCategory.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_non_string_name(self, router):
        result = await router.execute(None, {})

        assert result.error.category == ErrorCategory.INVALID_INPUT
        assert result.metadata.tool_name is None

    @pytest.mark.asyncio
    async def test_unknown_tool(self, router):
        result = await router.execute("missing", {})

        assert result.error.category == ErrorCategory.NOT_FOUND

    @pytest.mark.asyncio
    async def test_unknown_version(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", {"value": "x"}, {"version": "9.0.0"})

        assert result.error.category == ErrorCategory.VERSION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_explicit_version(self, registry, router):
        async def v1(args):
            return "v1"

        async def v2(args):
            return "v2"

        registry.register_tool(make_record(version="1.0.0", handler=v1))
        registry.register_tool(make_record(version="2.0.0", handler=v2))

        latest = await router.execute("echo", {"value": "x"})
        pinned = await router.execute("echo", {"value": "x"}, ExecutionConfig(version="1.0.0"))

        assert latest.data == "v2"
        assert pinned.data == "v1"
        assert pinned.metadata.version == "1.0.0"

    @pytest.mark.asyncio
    async def test_invalid_config(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", {"value": "x"}, config="fast")

        assert result.error.category == ErrorCategory.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_negative_timeout_rejected(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", {"value": "x"}, {"timeout_ms": -5})

        assert result.error.category == ErrorCategory.INVALID_INPUT

    @pytest.mark.parametrize("status", [ToolStatus.INACTIVE, ToolStatus.ERROR])
    @pytest.mark.asyncio
    async def test_non_active_tool_is_unavailable(self, registry, router, status):
        calls = {"count": 0}

        async def counting(args):
            calls["count"] += 1
            return args

        registry.register_tool(make_record(handler=counting), status=status, reason="off")

        result = await router.execute("echo", {"value": "x"})

        assert result.error.category == ErrorCategory.DEPENDENCY_UNAVAILABLE
        assert result.error.details["status"] == status.value
        assert calls["count"] == 0


class TestTimeout:

    @pytest.mark.asyncio
    async def test_async_handler_abandoned_after_timeout(self, registry, router):
        release = asyncio.Event()

        async def slow(args):
            await release.wait()
            return "late"

        registry.register_tool(make_record(handler=slow))

        result = await router.execute("echo", {"value": "x"}, {"timeout_ms": 50})

        assert result.error.category == ErrorCategory.TIMEOUT
        assert router.abandoned_count == 1

        release.set()
        for _ in range(20):
            await asyncio.sleep(0.01)
            if router.abandoned_count == 0:
                break
        assert router.abandoned_count == 0

    @pytest.mark.asyncio
    async def test_sync_handler_timeout(self, registry, router):
        def blocking(args):
            time.sleep(0.3)
            return "late"

        registry.register_tool(make_record(handler=blocking))

        result = await router.execute("echo", {"value": "x"}, {"timeoutMs": 20})

        assert result.error.category == ErrorCategory.TIMEOUT
        assert result.error.details["timeout_ms"] == 20

    @pytest.mark.asyncio
    async def test_zero_timeout_disables_limit(self, registry, metrics):
        async def quick(args):
            await asyncio.sleep(0.05)
            return "done"

        registry.register_tool(make_record(handler=quick))
        router = RequestRouter(registry, metrics=metrics, default_timeout_ms=10)

        result = await router.execute("echo", {"value": "x"}, {"timeout_ms": 0})

        assert result.data == "done"


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_calls_keep_their_own_data(self, registry, router):
        async def echo(args):
            await asyncio.sleep(0.01)
            return args["value"]

        registry.register_tool(make_record(handler=echo))
        values = [f"v{i}" for i in range(20)]

        results = await asyncio.gather(
            *(router.execute("echo", {"value": v}) for v in values)
        )

        assert [r.data for r in results] == values
        assert len({r.metadata.request_id for r in results}) == 20
        assert len(router.execution_log.get_by_tool("echo")) == 20

    @pytest.mark.asyncio
    async def test_unregister_during_calls(self, registry, router):
        release = asyncio.Event()

        async def gated(args):
            await release.wait()
            return args["value"]

        registry.register_tool(make_record(handler=gated))

        in_flight = asyncio.ensure_future(router.execute("echo", {"value": "x"}))
        await asyncio.sleep(0.01)
        registry.unregister_tool("echo")
        release.set()

        assert (await in_flight).data == "x"
        assert (await router.execute("echo", {"value": "y"})).error.category == ErrorCategory.NOT_FOUND


class TestBookkeeping:

    @pytest.mark.asyncio
    async def test_metadata_attached(self, registry, router):
        registry.register_tool(make_record())

        result = await router.execute("echo", {"value": "x"})

        meta = result.metadata
        assert meta.operation == "execute"
        assert meta.tool_name == "echo"
        assert meta.version == "1.0.0"
        assert meta.router_id == "router-test"
        assert meta.request_id
        assert meta.processing_time_ms >= 0

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, registry, router, metrics):
        registry.register_tool(make_record())

        await router.execute("echo", {"value": "x"})
        await router.execute("echo", {})
        await router.execute("missing", {})

        tool = metrics.get_tool_metrics("echo")
        assert tool["call_count"] == 2
        assert tool["success_count"] == 1
        assert tool["errors"] == {"ValidationError": 1}
        assert metrics.get_error_count("NotFound") == 1

    @pytest.mark.asyncio
    async def test_execution_log_entries(self, registry, router):
        registry.register_tool(make_record())

        ok = await router.execute("echo", {"value": "x"})
        await router.execute("echo", {})

        entries = router.execution_log.get_by_tool("echo")
        assert [e.status for e in entries] == ["ok", "error"]
        assert router.execution_log.get_by_request(ok.metadata.request_id)[0].output == {"value": "x"}


class TestProbe:

    @pytest.mark.asyncio
    async def test_probe_bypasses_status_gate(self, registry, router):
        registry.register_tool(make_record(probe_args={"value": "ping"}), status=ToolStatus.ERROR)
        record = registry.lookup("echo")

        result = await router.probe(record)

        assert result.success is True

    @pytest.mark.asyncio
    async def test_probe_without_args_fails(self, registry, router):
        registry.register_tool(make_record())

        result = await router.probe(registry.lookup("echo"))

        assert result.error.category == ErrorCategory.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_refresh_recovers_probed_tool(self, registry, router):
        registry.register_tool(make_record(probe_args={"value": "ping"}), status=ToolStatus.ERROR)

        result = await router.refresh()

        assert result.data["recovered"] == ["echo@1.0.0"]
        assert (await router.execute("echo", {"value": "x"})).success is True

    def test_list_tools_includes_status(self, registry, router):
        registry.register_tool(make_record(version="1.0.0"))
        registry.register_tool(make_record(version="2.0.0"), status=ToolStatus.INACTIVE)

        tools = router.list_tools()

        assert len(tools) == 1
        assert tools[0]["version"] == "2.0.0"
        assert tools[0]["status"] == "INACTIVE"
        assert tools[0]["input_schema"]["required"] == ["value"]
