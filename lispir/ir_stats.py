"""Pure functions for computing statistics over lowered instruction lists."""

from __future__ import annotations

from collections import Counter

from .ir import IRInstruction, Opcode, Slot


def count_opcodes(instructions: list[IRInstruction]) -> dict[str, int]:
    """Return a frequency map of opcode names, e.g. ``{"bind": 3, "mul": 2}``."""
    return dict(Counter(inst.opcode.value for inst in instructions))


def slots_used(instructions: list[IRInstruction]) -> set[int]:
    """Return every slot index referenced as a destination or operand."""
    used: set[int] = set()
    for inst in instructions:
        if inst.dest is not None:
            used.add(inst.dest.index)
        used.update(op.index for op in inst.operands if isinstance(op, Slot))
    return used


def label_targets(instructions: list[IRInstruction]) -> dict[str, int]:
    """Map each label to the number of branch/jump instructions targeting it."""
    targets: Counter[str] = Counter(
        inst.label
        for inst in instructions
        if inst.opcode != Opcode.LABEL and inst.label
    )
    return dict(targets)
