"""Closed enumerations shared by the compiler and the execution engine."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class FieldSetType(Enum):
    """Structural shape of a field set."""

    PARENT = "parent"
    SIMPLE_CHILD = "simple_child"
    COMPLEX_CHILD = "complex_child"


class DbAction(Enum):
    """Backend operation selected by the request discriminator parameter."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class PlanType(Enum):
    """Modify plan types. At most one plan per type is kept for a record shape."""

    INSERT_PLAN = "insert"
    UPDATE_PLAN = "update"
    DELETE_ITEM = "delete_item"
    DELETE_COMPLEX_CHILD = "delete_complex_child"

    @property
    def updates_item_data(self) -> bool:
        """True if executing this plan writes submitted field data."""
        return self in (PlanType.INSERT_PLAN, PlanType.UPDATE_PLAN)


class ChangeAction(Enum):
    """Action reported to editor change listeners."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
