"""
Tests for the execution log.
"""

import dataclasses

import pytest

from sdd_mcp.core.execution_log import ExecutionLog, InMemoryStorage


class TestExecutionLog:

    def test_log_returns_entry_id(self):
        log = ExecutionLog()

        entry_id = log.log("req-1", "echo", {"value": "x"}, {"value": "x"}, "ok", version="1.0.0")

        entry = log.get_by_request("req-1")[0]
        assert entry.entry_id == entry_id
        assert entry.tool == "echo"
        assert entry.version == "1.0.0"
        assert entry.status == "ok"

    def test_entries_are_immutable(self):
        log = ExecutionLog()
        log.log("req-1", "echo", {}, None, "error", category="ValidationError")

        entry = log.get_by_request("req-1")[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            entry.status = "ok"

    def test_query_by_tool(self):
        log = ExecutionLog()
        log.log("req-1", "a", {}, 1, "ok")
        log.log("req-2", "b", {}, 2, "ok")
        log.log("req-3", "a", {}, None, "timeout", category="Timeout")

        entries = log.get_by_tool("a")

        assert [e.request_id for e in entries] == ["req-1", "req-3"]

    def test_recent(self):
        log = ExecutionLog()
        for i in range(5):
            log.log(f"req-{i}", "a", {}, i, "ok")

        assert [e.output for e in log.recent(2)] == [3, 4]
        assert log.recent(0) == []


class TestInMemoryStorage:

    def test_bounded(self):
        storage = InMemoryStorage(max_entries=3)
        log = ExecutionLog(storage)
        for i in range(5):
            log.log(f"req-{i}", "a", {}, i, "ok")

        assert len(storage) == 3
        assert [e.request_id for e in log.recent(10)] == ["req-2", "req-3", "req-4"]
