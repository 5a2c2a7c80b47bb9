"""RowModify exception hierarchy.

All exceptions are RowModify-specific. Raw driver exceptions are never
exposed to callers; they are wrapped and chained with ``raise ... from``.
"""

from __future__ import annotations


class RowModifyError(Exception):
    """Base exception for all RowModify errors."""


class ConfigError(RowModifyError):
    """Raised when an editor configuration cannot be loaded or validated."""


# --- Registry ---


class RegistryError(RowModifyError):
    """Base for dataset registry errors."""


class DatasetNotFoundError(RegistryError):
    """Raised when a named dataset cannot be found in the registry."""

    def __init__(self, dataset_name: str) -> None:
        self.dataset_name = dataset_name
        super().__init__(f"Dataset not found: '{dataset_name}'")


class DuplicateDatasetError(RegistryError):
    """Raised when two datasets are registered under the same resource name."""

    def __init__(self, dataset_name: str) -> None:
        self.dataset_name = dataset_name
        super().__init__(f"Duplicate dataset name '{dataset_name}'")


# --- Plans ---


class PlanError(RowModifyError):
    """Base for plan compilation and registration errors."""


class PlanCompilationError(PlanError, ValueError):
    """Raised when a builder is given absent or mismatched inputs."""


class DuplicatePlanError(PlanError, ValueError):
    """Raised when a plan type is registered twice in one plan set."""

    def __init__(self, plan_type: str) -> None:
        self.plan_type = plan_type
        super().__init__(f"A plan of type '{plan_type}' is already registered")


class PlanSealedError(PlanError):
    """Raised when steps are added to a plan after compilation finished."""


# --- Execution ---


class ExecutionError(RowModifyError):
    """Base for request-time execution errors."""


class InternalRequestCallError(ExecutionError):
    """Raised when an internal backend request cannot be dispatched."""

    def __init__(self, request_name: str, detail: str) -> None:
        self.request_name = request_name
        super().__init__(f"Internal request '{request_name}' failed: {detail}")


class AuthorizationError(ExecutionError):
    """Raised when the requesting user may not run a backend request."""


class AuthenticationFailedError(ExecutionError):
    """Raised when the requesting user cannot be authenticated."""


class RequestValidationError(ExecutionError):
    """Raised when request parameters are missing or invalid."""

    def __init__(self, param_name: str, value: object, detail: str = "invalid value") -> None:
        self.param_name = param_name
        self.value = value
        super().__init__(f"Invalid parameter '{param_name}' = {value!r}: {detail}")


class RevisionMismatchError(RequestValidationError):
    """Raised when the submitted revision is not the backend's current revision."""

    def __init__(self, param_name: str, submitted: object, current: object) -> None:
        self.submitted = submitted
        self.current = current
        super().__init__(
            param_name,
            submitted,
            f"item was modified, current revision is {current!r}",
        )


# --- Transaction ---


class TransactionError(RowModifyError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowModifyError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
