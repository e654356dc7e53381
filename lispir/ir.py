"""IR Design: Flat, Typed Register-Machine Instructions."""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict

from . import constants


class Opcode(str, Enum):
    # Directives
    LINK_NAME = "link_name"
    PARAM_COUNT = "param_count"
    # Storage
    BIND = "bind"
    MOVE = "move"
    # Arithmetic / bitwise
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    SHL = "shl"
    SHR = "shr"
    # Comparison
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    AND = "and"
    # Control flow
    BRANCH = "branch"
    BRANCH_NOT = "branch_not"
    JUMP = "jump"
    RETURN = "return"
    # Calls
    CALL = "call"
    SYSCALL = "syscall"
    # Verbatim backend op from an `ir` form
    RAW = "raw"
    # Labels (pseudo-instruction)
    LABEL = "label"


ARITHMETIC_OPCODES: dict[str, Opcode] = {
    "+": Opcode.ADD,
    "-": Opcode.SUB,
    "*": Opcode.MUL,
    "/": Opcode.DIV,
    "<<": Opcode.SHL,
    ">>": Opcode.SHR,
}

COMPARISON_OPCODES: dict[str, Opcode] = {
    "=": Opcode.EQ,
    "not=": Opcode.NE,
    "<": Opcode.LT,
    "<=": Opcode.LE,
    ">": Opcode.GT,
    ">=": Opcode.GE,
}

BRANCH_OPCODES: frozenset[Opcode] = frozenset({Opcode.BRANCH, Opcode.BRANCH_NOT})


class Slot(BaseModel):
    """A virtual storage location, identified by its index."""

    model_config = ConfigDict(frozen=True)

    index: int

    def __str__(self) -> str:
        return f"{constants.SLOT_PREFIX}{self.index}"


class TypedConst(BaseModel):
    """An inline constant that never needs a storage location."""

    model_config = ConfigDict(frozen=True)

    type: str
    value: Any

    def retag(self, type_name: str) -> TypedConst:
        return TypedConst(type=type_name, value=self.value)

    def __str__(self) -> str:
        value = f'"{self.value}"' if isinstance(self.value, str) else self.value
        if isinstance(self.value, bool):
            value = "true" if self.value else "false"
        return f"({self.type} {value})"


Value = Union[Slot, TypedConst]


class IRInstruction(BaseModel):
    opcode: Opcode
    dest: Slot | None = None
    operands: list[Any] = []
    label: str | None = None  # for LABEL / branch targets

    def __str__(self) -> str:
        if self.opcode == Opcode.LABEL:
            return f"{self.label}:"
        parts: list[str] = []
        if self.dest is not None:
            parts.append(f"{self.dest} =")
        parts.append(self.opcode.value)
        for op in self.operands:
            parts.append(str(op))
        if self.label:
            parts.append(self.label)
        return " ".join(parts)
