"""Unit tests for ExecutionContext and ExecutionData."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from row_modify.core.context import ExecutionContext, ExecutionData, RequestDispatcher


class TestExecutionData:
    def test_release_is_idempotent(self) -> None:
        calls = []
        data = ExecutionData("Insert1", release=lambda: calls.append(1))
        data.release()
        data.release()
        assert data.released
        assert calls == [1]

    def test_context_manager_releases(self) -> None:
        with ExecutionData("Insert1") as data:
            assert not data.released
        assert data.released

    def test_first_row(self) -> None:
        assert ExecutionData("Q", rows=[{"a": 1}, {"a": 2}]).first() == {"a": 1}
        assert ExecutionData("Q").first() is None


class TestExecutionContext:
    def test_fake_dispatcher_satisfies_protocol(self, fake_dispatcher) -> None:
        assert isinstance(fake_dispatcher, RequestDispatcher)

    def test_use_params_swaps_and_restores(self, make_context) -> None:
        original = {"a": 1}
        ctx = make_context(original)
        with ctx.use_params({"a": 2}) as working:
            assert ctx.params is working
            assert ctx.get_param("a") == 2
        assert ctx.params is original

    def test_use_params_restores_on_error(self, make_context) -> None:
        original = {"a": 1}
        ctx = make_context(original)
        with pytest.raises(RuntimeError), ctx.use_params({}):
            raise RuntimeError("boom")
        assert ctx.params is original

    def test_context_values(self, fake_dispatcher) -> None:
        now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        ctx = ExecutionContext({}, fake_dispatcher, user="editor", now=now)
        assert ctx.context_values() == {"user": "editor", "now": "2024-05-01T12:00:00+00:00"}

    def test_perform_update_forwards_to_dispatcher(self, make_context, fake_dispatcher) -> None:
        ctx = make_context({"a": 1})
        data = ctx.perform_update("Update1")
        assert data.request_name == "Update1"
        assert fake_dispatcher.calls == [("update", "Update1", {"a": 1})]
