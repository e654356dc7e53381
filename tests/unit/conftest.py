"""Shared helpers for the lowering test suite."""

from __future__ import annotations

from lispir.context import FunctionContext, LabelGenerator
from lispir.frontend import ExpressionCompiler
from lispir.ir import IRInstruction, Opcode
from lispir.reader import read_forms
from lispir.registry import build_type_registry


def make_context(return_type: str = "int") -> FunctionContext:
    return FunctionContext(
        name="f",
        return_type=return_type,
        types=build_type_registry(),
        labels=LabelGenerator(),
    )


def declare(ctx: FunctionContext, *names: str):
    """Allocate named slots, as parameter binding would."""
    for name in names:
        ctx.new_slot(name)


def lower(text: str, ctx: FunctionContext | None = None, **kwargs):
    """Lower the single form in *text*; return ``(result, instructions)``."""
    ctx = ctx if ctx is not None else make_context()
    sink: list[IRInstruction] = []
    (form,) = read_forms(text)
    result = ExpressionCompiler().lower_expr(ctx, form, sink, **kwargs)
    return result, sink


def find_all(instructions: list[IRInstruction], opcode: Opcode) -> list[IRInstruction]:
    return [inst for inst in instructions if inst.opcode == opcode]


def opcodes(instructions: list[IRInstruction]) -> list[Opcode]:
    return [inst.opcode for inst in instructions]
