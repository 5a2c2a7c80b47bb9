"""Field set and display mapper metadata.

Frozen dataclasses describing the shape of a content record as the editor
definition declares it. Plans are compiled from these; nothing here is
mutated after the definition is loaded.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from row_modify.core.enums import FieldSetType


@dataclass(frozen=True)
class Field:
    """A single field backed by one column of its field set's table."""

    name: str
    column: str
    binary: bool = False
    system: bool = False


@dataclass(frozen=True)
class FieldSet:
    """A named collection of fields forming one structural piece of a record.

    Complex children with ``sequencing_supported`` keep their rows ordered
    by a sort rank column, assigned when rows are inserted.
    """

    name: str
    type: FieldSetType
    table: str
    fields: dict[str, Field | FieldSet] = field(default_factory=dict)
    sequencing_supported: bool = False

    def get(self, name: str) -> Field | FieldSet | None:
        return self.fields.get(name)

    def data_fields(self) -> list[Field]:
        """Non-system fields, in declaration order."""
        return [f for f in self.fields.values() if isinstance(f, Field) and not f.system]

    def binary_fields(self) -> list[Field]:
        return [f for f in self.data_fields() if f.binary]

    def child_field_sets(self) -> list[FieldSet]:
        return [f for f in self.fields.values() if isinstance(f, FieldSet)]

    def has_simple_child(self) -> bool:
        """True if any nested field set is a simple child."""
        return any(fs.type is FieldSetType.SIMPLE_CHILD for fs in self.child_field_sets())

    def primary_field(self) -> Field | None:
        """The value column of a simple child: its first data field."""
        fields = self.data_fields()
        return fields[0] if fields else None


@dataclass(frozen=True)
class DisplayMapping:
    """Reference from a display mapper to a field, or to a child mapper."""

    field_ref: str
    child_mapper: DisplayMapper | None = None


@dataclass(frozen=True)
class DisplayMapper:
    """Ordered field references for one field set, identified by a stable id."""

    id: int | str
    field_set_ref: str
    mappings: tuple[DisplayMapping, ...] = ()

    def __iter__(self) -> Iterator[DisplayMapping]:
        return iter(self.mappings)

    def field_refs(self) -> list[str]:
        """Names of the plain fields this mapper submits."""
        return [m.field_ref for m in self.mappings if m.child_mapper is None]

    def child_mappers(self) -> list[DisplayMapper]:
        return [m.child_mapper for m in self.mappings if m.child_mapper is not None]

    def find(self, mapper_id: int | str) -> DisplayMapper | None:
        """Depth-first search for a mapper by id (matched on string form)."""
        if str(self.id) == str(mapper_id):
            return self
        for child in self.child_mappers():
            found = child.find(mapper_id)
            if found is not None:
                return found
        return None


FieldSetResolver = Callable[[str], FieldSet]


def field_set_index(root: FieldSet) -> dict[str, FieldSet]:
    """Map every field set name reachable from *root* to its field set."""
    index = {root.name: root}
    for child in root.child_field_sets():
        index.update(field_set_index(child))
    return index
