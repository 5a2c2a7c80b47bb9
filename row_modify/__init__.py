"""RowModify - modify plan compiler and step engine for hierarchical content records."""

from __future__ import annotations

from row_modify.core.config import EditorConfig, SystemMappingConfig, load_config
from row_modify.core.connection import ConnectionConfig, ConnectionManager
from row_modify.core.context import ExecutionContext, ExecutionData, RequestDispatcher
from row_modify.core.dispatcher import Dispatcher
from row_modify.core.enums import (
    ChangeAction,
    DatabaseBackend,
    DbAction,
    FieldSetType,
    PlanType,
)
from row_modify.core.exceptions import (
    AdapterError,
    AuthenticationFailedError,
    AuthorizationError,
    ConfigError,
    ConnectionError,  # noqa: A004
    DatasetNotFoundError,
    DuplicateDatasetError,
    DuplicatePlanError,
    ExecutionError,
    InternalRequestCallError,
    PlanCompilationError,
    PlanError,
    PlanSealedError,
    PoolError,
    RegistryError,
    RequestValidationError,
    RevisionMismatchError,
    RowModifyError,
    TransactionError,
    TransactionStateError,
)
from row_modify.core.registry import DatasetRegistry
from row_modify.core.transaction import TransactionManager
from row_modify.editor.compiler import PlanCompiler
from row_modify.editor.handler import ModifyCommandHandler, ModifyResult
from row_modify.editor.keys import InMemoryKeyGenerator, KeyGenerator, NextNumberKeyGenerator
from row_modify.mapping.datasets import DatasetFactory, SqlDatasetFactory
from row_modify.mapping.fieldset import DisplayMapper, DisplayMapping, Field, FieldSet
from row_modify.plan.builders import BuilderKind, ModifyPlanBuilder, build_plan
from row_modify.plan.events import EditorChangeEvent
from row_modify.plan.plan import ModifyPlan
from row_modify.plan.plan_set import ModifyPlanSet
from row_modify.plan.sequencing import SortRankStep
from row_modify.plan.step import ConditionalStep, ModifyStep, ParamPresent, UpdateStep
from row_modify.plan.validation import RevisionValidationStep

__all__ = [
    # Config
    "EditorConfig",
    "SystemMappingConfig",
    "load_config",
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    # Execution
    "Dispatcher",
    "ExecutionContext",
    "ExecutionData",
    "RequestDispatcher",
    "TransactionManager",
    # Registry
    "DatasetRegistry",
    # Metadata
    "Field",
    "FieldSet",
    "DisplayMapper",
    "DisplayMapping",
    "DatasetFactory",
    "SqlDatasetFactory",
    # Plans
    "ModifyStep",
    "UpdateStep",
    "ConditionalStep",
    "ParamPresent",
    "RevisionValidationStep",
    "SortRankStep",
    "ModifyPlan",
    "ModifyPlanSet",
    "ModifyPlanBuilder",
    "BuilderKind",
    "build_plan",
    "EditorChangeEvent",
    # Editor
    "PlanCompiler",
    "ModifyCommandHandler",
    "ModifyResult",
    "KeyGenerator",
    "InMemoryKeyGenerator",
    "NextNumberKeyGenerator",
    # Enums
    "ChangeAction",
    "DatabaseBackend",
    "DbAction",
    "FieldSetType",
    "PlanType",
    # Exceptions
    "RowModifyError",
    "ConfigError",
    "RegistryError",
    "DatasetNotFoundError",
    "DuplicateDatasetError",
    "PlanError",
    "PlanCompilationError",
    "DuplicatePlanError",
    "PlanSealedError",
    "ExecutionError",
    "InternalRequestCallError",
    "AuthorizationError",
    "AuthenticationFailedError",
    "RequestValidationError",
    "RevisionMismatchError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
