"""Execution context for running compiled plans.

The context carries the live request parameter map for one request and
forwards named backend requests to a RequestDispatcher. Steps never keep
state between executions; everything request-scoped lives here.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from row_modify.core.config import EditorConfig


class ExecutionData:
    """Result of one backend request.

    Holds the rows of a query or the affected row count of an update. The
    backend resources behind it stay reserved until release() is called;
    releasing twice is a no-op.
    """

    def __init__(
        self,
        request_name: str,
        rows: list[dict[str, Any]] | None = None,
        rowcount: int = 0,
        release: Callable[[], None] | None = None,
    ) -> None:
        self.request_name = request_name
        self.rows = rows if rows is not None else []
        self.rowcount = rowcount
        self._release = release
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._release is not None:
            self._release()

    def __enter__(self) -> ExecutionData:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


@runtime_checkable
class RequestDispatcher(Protocol):
    """Runs named backend requests against the parameters of a context."""

    def perform_update(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        ...

    def perform_query(self, request_name: str, context: ExecutionContext) -> ExecutionData:
        ...


class ExecutionContext:
    """Request-scoped state shared by the steps of one plan execution."""

    def __init__(
        self,
        params: dict[str, Any],
        dispatcher: RequestDispatcher,
        config: EditorConfig | None = None,
        *,
        user: str | None = None,
        now: datetime | None = None,
    ) -> None:
        self._params = params
        self._dispatcher = dispatcher
        self.config = config or EditorConfig()
        self.user = user
        self.now = now or datetime.now(timezone.utc)

    @property
    def params(self) -> dict[str, Any]:
        """The live parameter map."""
        return self._params

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    def get_param(self, name: str, default: Any = None) -> Any:
        return self._params.get(name, default)

    def set_param(self, name: str, value: Any) -> None:
        self._params[name] = value

    @contextmanager
    def use_params(self, params: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Make *params* the live map, restoring the previous map on exit."""
        original = self._params
        self._params = params
        try:
            yield params
        finally:
            self._params = original

    def context_values(self) -> dict[str, Any]:
        """Values available to ``context`` sourced columns."""
        return {"user": self.user, "now": self.now.isoformat()}

    def perform_update(self, request_name: str) -> ExecutionData:
        return self._dispatcher.perform_update(request_name, self)

    def perform_query(self, request_name: str) -> ExecutionData:
        return self._dispatcher.perform_query(request_name, self)
