"""Per-compilation context: everything one function's lowering mutates."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

from .config import CompilerConfig
from .ir import IRInstruction, Opcode, Slot
from .registry import SlotRegistry, TypeRegistry


class LabelGenerator:
    """Hands out labels that are never reused for the lifetime of a compiler."""

    def __init__(self):
        self._counter = itertools.count()

    def fresh(self, prefix: str = "L") -> str:
        return f"{prefix}_{next(self._counter)}"


@dataclass
class FunctionContext:
    """State scoped to the lowering of exactly one function.

    Each in-flight compilation owns its own ``SlotRegistry``; the type
    registry and label generator are shared but only read from / advanced.
    """

    name: str
    return_type: str
    types: TypeRegistry
    labels: LabelGenerator
    config: CompilerConfig = field(default_factory=CompilerConfig)
    slots: SlotRegistry = field(default_factory=SlotRegistry)

    def new_slot(self, name: str | None = None) -> Slot:
        return Slot(index=self.slots.allocate(name))

    def lookup(self, name: str, form=None) -> Slot:
        return Slot(index=self.slots.resolve(name, form))

    def fresh_label(self, prefix: str) -> str:
        return self.labels.fresh(prefix)


def emit(
    sink: list[IRInstruction],
    opcode: Opcode,
    *,
    dest: Slot | None = None,
    operands: list | None = None,
    label: str = "",
) -> IRInstruction:
    """Append one instruction to *sink* and return it."""
    inst = IRInstruction(
        opcode=opcode,
        dest=dest,
        operands=operands or [],
        label=label or None,
    )
    sink.append(inst)
    return inst
