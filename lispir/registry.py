"""Slot & Type Registries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import DuplicateType, UnboundName, UnknownType
from . import constants

logger = logging.getLogger(__name__)


# ── Slots ────────────────────────────────────────────────────────


@dataclass
class SlotRegistry:
    """Bidirectional slot index <-> declared name table for one function.

    Anonymous (temporary) slots appear only in ``slot_to_name`` with a
    ``None`` name.  When a name is redeclared, the shadowed slot loses its
    name so that ``name_to_slot[n] == i`` iff ``slot_to_name[i] == n``.
    """

    slot_to_name: list[str | None] = field(default_factory=list)
    name_to_slot: dict[str, int] = field(default_factory=dict)

    def allocate(self, name: str | None = None) -> int:
        index = len(self.slot_to_name)
        self.slot_to_name.append(name)
        if name is not None:
            shadowed = self.name_to_slot.get(name)
            if shadowed is not None:
                self.slot_to_name[shadowed] = None
            self.name_to_slot[name] = index
        return index

    def resolve(self, name: str, form: Any = None) -> int:
        index = self.name_to_slot.get(name)
        if index is None:
            raise UnboundName(f"Unbound name '{name}'", form)
        return index

    def reset(self):
        self.slot_to_name.clear()
        self.name_to_slot.clear()

    def __len__(self) -> int:
        return len(self.slot_to_name)


# ── Types ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TypeInfo:
    id: int
    name: str
    backend_name: str
    # (field_name, type_name) pairs for composite types
    fields: tuple[tuple[str, str], ...] = ()

    @property
    def is_composite(self) -> bool:
        return bool(self.fields)


@dataclass
class TypeRegistry:
    """Append-only table of declared types, referenced by name."""

    types: list[TypeInfo] = field(default_factory=list)
    by_name: dict[str, int] = field(default_factory=dict)

    def register(
        self,
        name: str,
        backend_name: str,
        fields: tuple[tuple[str, str], ...] = (),
        form: Any = None,
    ) -> int:
        if name in self.by_name:
            raise DuplicateType(f"Type '{name}' is already registered", form)
        for field_name, field_type in fields:
            if field_type not in self.by_name:
                raise UnknownType(
                    f"Unknown type '{field_type}' for field '{field_name}' of '{name}'",
                    form,
                )
        type_id = len(self.types)
        self.types.append(
            TypeInfo(id=type_id, name=name, backend_name=backend_name, fields=fields)
        )
        self.by_name[name] = type_id
        logger.debug("Registered type %s -> %s (id=%d)", name, backend_name, type_id)
        return type_id

    def resolve(self, name: str, form: Any = None) -> TypeInfo:
        type_id = self.by_name.get(name)
        if type_id is None:
            raise UnknownType(f"Unknown type '{name}'", form)
        return self.types[type_id]

    def id_of(self, name: str, form: Any = None) -> int:
        """Resolve *name* to its type id; raises ``UnknownType`` when unregistered."""
        return self.resolve(name, form).id

    def __contains__(self, name: str) -> bool:
        return name in self.by_name


def build_type_registry() -> TypeRegistry:
    """Create a registry pre-populated with the primitive types."""
    registry = TypeRegistry()
    for name, backend_name in constants.PRIMITIVE_TYPES:
        registry.register(name, backend_name)
    return registry
