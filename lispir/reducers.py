"""Arithmetic and comparison reducers.

Both take the expression compiler as their first argument and call back into
``lower_value`` for each operand.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .context import FunctionContext, emit
from .errors import ArityError
from .forms import Apply
from .ir import IRInstruction, Opcode, Slot, Value
from . import constants

if TYPE_CHECKING:
    from .frontend import ExpressionCompiler


def fold_arithmetic(
    compiler: ExpressionCompiler,
    ctx: FunctionContext,
    form: Apply,
    opcode: Opcode,
    sink: list[IRInstruction],
    hint: str | None = None,
) -> Value:
    """Left fold ``(op a b c ...)`` into ``((a op b) op c) ...``.

    Every step writes a fresh slot bound to ``config.fold_type``; a single
    operand is returned unchanged.
    """
    if not form.args:
        raise ArityError(f"'{form.operator}' needs at least one operand", form)
    acc = compiler.lower_value(ctx, form.args[0], sink, hint=hint)
    for arg in form.args[1:]:
        operand = compiler.lower_value(ctx, arg, sink, hint=hint)
        dest = ctx.new_slot()
        emit(sink, Opcode.BIND, operands=[dest, ctx.config.fold_type])
        emit(sink, opcode, dest=dest, operands=[acc, operand])
        acc = dest
    return acc


def chain_comparison(
    compiler: ExpressionCompiler,
    ctx: FunctionContext,
    form: Apply,
    opcode: Opcode,
    sink: list[IRInstruction],
) -> Slot:
    """Lower ``(op a b c ...)`` to ``(a op b) and (b op c) and ...``.

    Each operand is lowered exactly once.  A temporary is only needed when
    there are more than two operands.
    """
    if len(form.args) < 2:
        raise ArityError(f"'{form.operator}' needs at least two operands", form)
    result = ctx.new_slot()
    emit(sink, Opcode.BIND, operands=[result, constants.BOOLEAN_TYPE])
    temp = None
    if len(form.args) > 2:
        temp = ctx.new_slot()
        emit(sink, Opcode.BIND, operands=[temp, constants.BOOLEAN_TYPE])

    lhs = compiler.lower_value(ctx, form.args[0], sink)
    for i, arg in enumerate(form.args[1:]):
        rhs = compiler.lower_value(ctx, arg, sink)
        if i == 0:
            emit(sink, opcode, dest=result, operands=[lhs, rhs])
        else:
            emit(sink, opcode, dest=temp, operands=[lhs, rhs])
            emit(sink, Opcode.AND, dest=result, operands=[result, temp])
        lhs = rhs
    return result
