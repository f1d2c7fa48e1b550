"""
Tests for the tool registry.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from sdd_mcp.core.tool_registry import (
    ToolRegistry,
    ToolStatus,
    lexicographic_latest,
    semantic_latest,
)
from sdd_mcp.exceptions import ErrorCategory, ProcessingException
from sdd_mcp.schemas import ExecutionResult

from conftest import make_record


class TestRegistration:
    """register_tool / unregister_tool."""

    def test_register_success(self, registry):
        result = registry.register_tool(make_record())

        assert result.success is True
        assert result.data is None
        assert registry.get_tool_count() == 1
        assert registry.is_tool_registered("echo")

    def test_duplicate_registration_rejected(self, registry):
        registry.register_tool(make_record())

        result = registry.register_tool(make_record())

        assert result.success is False
        assert result.error.category == ErrorCategory.DUPLICATE_REGISTRATION
        assert registry.get_tool_count() == 1

    @pytest.mark.parametrize("version", ["1.0.0", "2.0.0-beta", "v3"])
    def test_duplicate_pair_never_changes_count(self, registry, version):
        registry.register_tool(make_record(version=version))
        registry.register_tool(make_record(name="other", version=version))
        before = registry.get_tool_count()

        result = registry.register_tool(make_record(version=version))

        assert result.error.category == ErrorCategory.DUPLICATE_REGISTRATION
        assert registry.get_tool_count() == before

    def test_same_name_new_version_allowed(self, registry):
        registry.register_tool(make_record(version="1.0.0"))
        result = registry.register_tool(make_record(version="2.0.0"))

        assert result.success is True
        assert registry.get_versions("echo") == ["1.0.0", "2.0.0"]

    def test_invalid_record_rejected(self, registry):
        result = registry.register_tool(None)

        assert result.success is False
        assert result.error.category == ErrorCategory.INVALID_INPUT
        assert registry.get_tool_count() == 0

    def test_non_callable_handler_rejected(self, registry):
        result = registry.register_tool(make_record(handler="not callable"))

        assert result.error.category == ErrorCategory.INVALID_INPUT

    def test_definition_metadata_name_mismatch_rejected(self, registry):
        record = make_record()
        other = make_record(name="other")
        mismatched = type(record)(definition=other.definition, metadata=record.metadata, handler=record.handler)

        result = registry.register_tool(mismatched)

        assert result.error.category == ErrorCategory.INVALID_INPUT

    def test_unregister_all_versions_by_default(self, registry):
        registry.register_tool(make_record(version="1.0.0"))
        registry.register_tool(make_record(version="2.0.0"))

        result = registry.unregister_tool("echo")

        assert result.success is True
        for version in ("1.0.0", "2.0.0"):
            lookup = registry.get_tool("echo", version)
            assert lookup.success is False
            assert lookup.error.category in (ErrorCategory.NOT_FOUND, ErrorCategory.VERSION_NOT_FOUND)
        assert registry.get_tool_count() == 0

    def test_unregister_single_version(self, registry):
        registry.register_tool(make_record(version="1.0.0"))
        registry.register_tool(make_record(version="2.0.0"))

        registry.unregister_tool("echo", "1.0.0")

        assert registry.get_versions("echo") == ["2.0.0"]
        assert registry.get_tool("echo", "1.0.0").error.category == ErrorCategory.VERSION_NOT_FOUND

    def test_unregister_unknown_tool_fails(self, registry):
        result = registry.unregister_tool("missing")

        assert result.success is False
        assert result.error.category == ErrorCategory.NOT_FOUND

    def test_unregister_empty_version_rejected(self, registry):
        registry.register_tool(make_record(version="1.0.0"))
        registry.register_tool(make_record(version="2.0.0"))

        result = registry.unregister_tool("echo", "")

        assert result.error.category == ErrorCategory.INVALID_INPUT
        assert registry.get_versions("echo") == ["1.0.0", "2.0.0"]


class TestLookup:
    """get_tool / get_tools / latest-version resolution."""

    def test_round_trip_definition_and_metadata(self, registry):
        record = make_record(tags=("a", "b"), probe_args={"value": "ping"})
        registry.register_tool(record)

        result = registry.get_tool("echo", "1.0.0")

        assert result.success is True
        assert result.data.definition == record.definition
        assert result.data.metadata == record.metadata

    def test_returned_schema_is_detached(self, registry):
        registry.register_tool(make_record())

        first = registry.get_tool("echo").data
        first.definition.input_schema["required"].append("tampered")

        second = registry.get_tool("echo").data
        assert second.definition.input_schema["required"] == ["value"]

    def test_latest_version_is_lexicographic(self, registry):
        for version in ("1.0.0", "1.9.0", "2.0.0"):
            registry.register_tool(make_record(version=version))

        result = registry.get_tool("echo")

        assert result.data.version == "2.0.0"

    def test_lexicographic_order_puts_ten_before_two(self, registry):
        assert "10.0.0" < "2.0.0"
        registry.register_tool(make_record(version="2.0.0"))
        registry.register_tool(make_record(version="10.0.0"))

        assert registry.get_tool("echo").data.version == "2.0.0"

    def test_semantic_strategy_picks_highest_number(self):
        registry = ToolRegistry(latest_strategy=semantic_latest)
        registry.register_tool(make_record(version="2.0.0"))
        registry.register_tool(make_record(version="10.0.0"))

        assert registry.get_tool("echo").data.version == "10.0.0"

    def test_semantic_release_after_prerelease(self):
        assert semantic_latest(["1.0.0-rc1", "1.0.0"]) == "1.0.0"
        assert lexicographic_latest(["1.0.0-rc1", "1.0.0"]) == "1.0.0-rc1"

    def test_unknown_name(self, registry):
        result = registry.get_tool("missing")

        assert result.success is False
        assert result.error.category == ErrorCategory.NOT_FOUND

    def test_unknown_version(self, registry):
        registry.register_tool(make_record())

        result = registry.get_tool("echo", "9.9.9")

        assert result.error.category == ErrorCategory.VERSION_NOT_FOUND
        assert result.error.details["available_versions"] == ["1.0.0"]

    def test_get_tools_flattens_versions(self, registry):
        registry.register_tool(make_record(version="1.0.0"))
        registry.register_tool(make_record(version="2.0.0"))
        registry.register_tool(make_record(name="other"))

        result = registry.get_tools()

        assert result.success is True
        assert sorted(d.name for d in result.data) == ["echo", "echo", "other"]

    def test_list_records_latest_only(self, registry):
        registry.register_tool(make_record(version="1.0.0"))
        registry.register_tool(make_record(version="2.0.0"))

        records = registry.list_records(latest_only=True)

        assert [(r.name, r.version) for r in records] == [("echo", "2.0.0")]


class TestStatus:
    """Status flags and refresh."""

    def test_register_with_status(self, registry):
        registry.register_tool(make_record(), status=ToolStatus.INACTIVE, reason="disabled")

        entry = registry.get_status("echo")

        assert entry.status is ToolStatus.INACTIVE
        assert entry.reason == "disabled"
        assert registry.get_active_tool_count() == 0

    def test_set_status(self, registry):
        registry.register_tool(make_record())

        registry.set_status("echo", "1.0.0", ToolStatus.ERROR, "broken")

        assert registry.get_status_report()["echo@1.0.0"]["status"] == "ERROR"

    @pytest.mark.asyncio
    async def test_refresh_recovers_after_successful_probe(self, registry):
        registry.register_tool(make_record(probe_args={"value": "ping"}), status=ToolStatus.ERROR)

        async def prober(record):
            return ExecutionResult.ok(data=record.metadata.probe_args)

        result = await registry.refresh(prober)

        assert result.data["recovered"] == ["echo@1.0.0"]
        assert registry.get_status("echo").status is ToolStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_refresh_keeps_error_when_probe_fails(self, registry):
        registry.register_tool(make_record(probe_args={"value": "ping"}), status=ToolStatus.ERROR)

        async def prober(record):
            return ExecutionResult.fail(ProcessingException(record.name, "still broken"))

        result = await registry.refresh(prober)

        assert result.data["still_failing"] == ["echo@1.0.0"]
        entry = registry.get_status("echo")
        assert entry.status is ToolStatus.ERROR
        assert "still broken" in entry.reason

    @pytest.mark.asyncio
    async def test_refresh_without_probe_args_stays_in_error(self, registry):
        registry.register_tool(make_record(), status=ToolStatus.ERROR)

        async def prober(record):
            raise AssertionError("must not probe a tool without probe_args")

        result = await registry.refresh(prober)

        assert result.data["still_failing"] == ["echo@1.0.0"]
        assert registry.get_status("echo").reason == "No health probe available"

    @pytest.mark.asyncio
    async def test_forced_refresh_resets_error(self, registry):
        registry.register_tool(make_record(), status=ToolStatus.ERROR)

        result = await registry.refresh(force=True)

        assert result.data["forced"] is True
        assert registry.get_status("echo").status is ToolStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_refresh_ignores_inactive(self, registry):
        registry.register_tool(make_record(), status=ToolStatus.INACTIVE)

        result = await registry.refresh(force=True)

        assert result.data["recovered"] == []
        assert registry.get_status("echo").status is ToolStatus.INACTIVE


class TestConcurrency:
    """Registry access from several threads."""

    def test_register_unregister_race_lookups(self, registry):
        registry.register_tool(make_record())

        def churn(worker):
            name = f"churn_{worker}"
            for i in range(50):
                version = f"1.0.{i}"
                assert registry.register_tool(make_record(name=name, version=version)).success
                assert registry.unregister_tool(name, version).success

        def read():
            for _ in range(200):
                assert registry.lookup("echo").version == "1.0.0"
                definitions = registry.get_tools().data
                assert "echo" in [d.name for d in definitions]
                assert len(definitions) <= 5

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(churn, w) for w in range(4)]
            futures += [pool.submit(read) for _ in range(4)]
            for future in futures:
                future.result()

        assert registry.get_tool_count() == 1
        assert [r.name for r in registry.list_records()] == ["echo"]
