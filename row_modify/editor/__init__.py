"""Editor layer - plan compilation and modify request handling."""

from __future__ import annotations

from row_modify.editor.compiler import PlanCompiler
from row_modify.editor.handler import ModifyCommandHandler, ModifyResult
from row_modify.editor.keys import InMemoryKeyGenerator, KeyGenerator, NextNumberKeyGenerator

__all__ = [
    "PlanCompiler",
    "ModifyCommandHandler",
    "ModifyResult",
    "KeyGenerator",
    "InMemoryKeyGenerator",
    "NextNumberKeyGenerator",
]
