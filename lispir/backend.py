"""Backend interface: the sink for lowered functions.

The real assembler (type-checking, register allocation, code generation) is
an external collaborator.  ``RecordingBackend`` keeps every unit it is
handed, which is what the API and CLI dump from.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .errors import BackendError
from .ir import IRInstruction, Opcode
from .registry import TypeInfo

logger = logging.getLogger(__name__)


class Backend(ABC):
    """Accepts type declarations at setup and one instruction list per function."""

    @abstractmethod
    def declare_type(self, type_info: TypeInfo): ...

    @abstractmethod
    def assemble(self, instructions: list[IRInstruction]): ...


class RecordingBackend(Backend):
    """In-memory backend that stores declared types and assembled units."""

    def __init__(self):
        self.types: dict[str, TypeInfo] = {}
        self.units: dict[str, list[IRInstruction]] = {}

    def declare_type(self, type_info: TypeInfo):
        self.types[type_info.name] = type_info

    def assemble(self, instructions: list[IRInstruction]):
        if not instructions or instructions[0].opcode != Opcode.LINK_NAME:
            raise BackendError("Instruction list must start with a link_name directive")
        name = instructions[0].operands[0]
        if name in self.units:
            raise BackendError(f"Duplicate link name '{name}'")
        self.units[name] = list(instructions)
        logger.info("Assembled %s (%d instructions)", name, len(instructions))

    def dump(self) -> str:
        """Render declared composite types, then every assembled unit."""
        lines: list[str] = []
        for type_info in self.types.values():
            if type_info.is_composite:
                fields = " ".join(f"{field}:{kind}" for field, kind in type_info.fields)
                lines.append(
                    f"type {type_info.name} = {type_info.backend_name} [{fields}]"
                )
        if lines:
            lines.append("")
        for name, instructions in self.units.items():
            lines.append(f"{name}:")
            lines.extend(f"  {inst}" for inst in instructions)
            lines.append("")
        return "\n".join(lines)
