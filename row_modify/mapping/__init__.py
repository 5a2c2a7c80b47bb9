"""Mapping layer - record metadata, system columns and backend datasets."""

from __future__ import annotations

from row_modify.mapping.datasets import (
    Binding,
    Dataset,
    DatasetFactory,
    SqlDatasetFactory,
    Statement,
)
from row_modify.mapping.fieldset import (
    DisplayMapper,
    DisplayMapping,
    Field,
    FieldSet,
    FieldSetResolver,
    field_set_index,
)
from row_modify.mapping.system import (
    ColumnMapper,
    ColumnMapping,
    ContextSource,
    LiteralSource,
    ParamSource,
    SystemMapping,
)

__all__ = [
    "Field",
    "FieldSet",
    "FieldSetResolver",
    "field_set_index",
    "DisplayMapper",
    "DisplayMapping",
    "ParamSource",
    "LiteralSource",
    "ContextSource",
    "SystemMapping",
    "ColumnMapping",
    "ColumnMapper",
    "Binding",
    "Statement",
    "Dataset",
    "DatasetFactory",
    "SqlDatasetFactory",
]
