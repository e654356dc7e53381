"""Expression Compiler: surface form to IR lowering.

``lower_expr`` lowers one form into zero or more instructions appended to a
sink and returns where the result lives: a ``TypedConst`` when the value
never needs storage, a ``Slot`` otherwise, or ``None`` for forms that yield
no value (``while``, ``return``, ``ir``, discarded calls).
"""

from __future__ import annotations

import logging
from typing import Callable

from .context import FunctionContext, emit
from .errors import ArityError, TypeMismatch, UnsupportedForm
from .forms import Apply, Form, Literal, Symbol, split_typed_name, to_datum
from .ir import (
    ARITHMETIC_OPCODES,
    COMPARISON_OPCODES,
    IRInstruction,
    Opcode,
    Slot,
    TypedConst,
    Value,
)
from . import constants, reducers

logger = logging.getLogger(__name__)


class ExpressionCompiler:
    """Lowers surface forms into a flat instruction stream.

    Special forms are looked up by head symbol in ``_SPECIAL_FORMS``;
    arithmetic and comparison heads go to the reducers; any other symbol
    head is a direct call.
    """

    def __init__(self):
        self._SPECIAL_FORMS: dict[str, Callable] = {
            constants.KW_THE: self._lower_the,
            constants.KW_DEF: self._lower_def,
            constants.KW_VAR: self._lower_def,
            constants.KW_SET: self._lower_set,
            constants.KW_RETURN: self._lower_return,
            constants.KW_DO: self._lower_do,
            constants.KW_WHILE: self._lower_while,
            constants.KW_IF: self._lower_if,
            constants.KW_IR: self._lower_ir,
            constants.KW_SYSCALL: self._lower_syscall,
        }

    # ── entry points ─────────────────────────────────────────────

    def lower_expr(
        self,
        ctx: FunctionContext,
        form: Form,
        sink: list[IRInstruction],
        discard: bool = False,
        hint: str | None = None,
    ) -> Value | None:
        if isinstance(form, Literal):
            return self._lower_literal(ctx, form, hint)
        if isinstance(form, Symbol):
            return ctx.lookup(form.name, form)
        if isinstance(form, Apply):
            return self._lower_apply(ctx, form, sink, discard, hint)
        raise UnsupportedForm("Unsupported form", form)

    def lower_value(
        self,
        ctx: FunctionContext,
        form: Form,
        sink: list[IRInstruction],
        hint: str | None = None,
    ) -> Value:
        """Lower *form* where a value is required."""
        value = self.lower_expr(ctx, form, sink, hint=hint)
        if value is None:
            raise UnsupportedForm("Form yields no value", form)
        return value

    def lower_to_slot(
        self,
        ctx: FunctionContext,
        form: Form,
        sink: list[IRInstruction],
        hint: str | None = None,
    ) -> Slot:
        """Lower *form* and materialise an inline constant into a bound slot."""
        value = self.lower_value(ctx, form, sink, hint=hint)
        if isinstance(value, Slot):
            return value
        slot = ctx.new_slot()
        emit(sink, Opcode.BIND, operands=[slot, value.type])
        emit(sink, Opcode.MOVE, dest=slot, operands=[value])
        return slot

    # ── dispatch ─────────────────────────────────────────────────

    def _lower_literal(
        self, ctx: FunctionContext, form: Literal, hint: str | None
    ) -> TypedConst:
        value = form.value
        if isinstance(value, bool):
            return TypedConst(type=constants.BOOLEAN_TYPE, value=value)
        if isinstance(value, str):
            return TypedConst(type=constants.STRING_TYPE, value=value)
        return TypedConst(type=hint or ctx.config.literal_type, value=value)

    def _lower_apply(
        self,
        ctx: FunctionContext,
        form: Apply,
        sink: list[IRInstruction],
        discard: bool,
        hint: str | None,
    ) -> Value | None:
        op = form.operator
        if not op:
            raise UnsupportedForm("Unsupported form", form)
        handler = self._SPECIAL_FORMS.get(op)
        if handler:
            return handler(ctx, form, sink, discard, hint)
        if op in ARITHMETIC_OPCODES:
            return reducers.fold_arithmetic(
                self, ctx, form, ARITHMETIC_OPCODES[op], sink, hint
            )
        if op in COMPARISON_OPCODES:
            return reducers.chain_comparison(
                self, ctx, form, COMPARISON_OPCODES[op], sink
            )
        return self._lower_call(ctx, form, sink, discard)

    # ── bindings ─────────────────────────────────────────────────

    def _lower_the(self, ctx, form: Apply, sink, discard, hint) -> Value:
        if len(form.args) != 2:
            raise ArityError("'the' takes a type and an expression", form)
        type_form, expr = form.args
        if not isinstance(type_form, Symbol):
            raise UnsupportedForm("Expected a type name", form)
        type_name = type_form.name
        ctx.types.id_of(type_name, form)
        value = self.lower_value(ctx, expr, sink, hint=type_name)
        if isinstance(value, TypedConst):
            if value.type != type_name:
                raise TypeMismatch(
                    f"Constant of type '{value.type}' asserted as '{type_name}'",
                    form,
                )
            return value.retag(type_name)
        emit(sink, Opcode.BIND, operands=[value, type_name])
        return value

    def _lower_def(self, ctx, form: Apply, sink, discard, hint) -> Slot:
        """Lower ``def``/``var``; both allocate a fresh slot for the name."""
        if len(form.args) != 2:
            raise ArityError(f"'{form.operator}' takes a name and a value", form)
        decl, init = form.args
        if not isinstance(decl, Symbol):
            raise UnsupportedForm("Expected a name", form)
        name, declared = split_typed_name(decl.name)
        type_name = declared or ctx.config.default_type
        ctx.types.id_of(type_name, form)
        value = self.lower_value(ctx, init, sink, hint=type_name)
        slot = ctx.new_slot(name)
        if declared:
            emit(sink, Opcode.BIND, operands=[slot, declared])
        emit(sink, Opcode.MOVE, dest=slot, operands=[value])
        return slot

    def _lower_set(self, ctx, form: Apply, sink, discard, hint) -> Slot:
        if len(form.args) != 2:
            raise ArityError("'set' takes a name and a value", form)
        target, rhs = form.args
        if not isinstance(target, Symbol):
            raise UnsupportedForm("Expected a name", form)
        value = self.lower_value(ctx, rhs, sink)
        slot = ctx.lookup(target.name, form)
        emit(sink, Opcode.MOVE, dest=slot, operands=[value])
        return slot

    # ── sequencing ───────────────────────────────────────────────

    def _lower_return(self, ctx, form: Apply, sink, discard, hint) -> None:
        if len(form.args) > 1:
            raise ArityError("'return' takes at most one value", form)
        if not form.args:
            emit(sink, Opcode.RETURN)
            return None
        value = self.lower_value(ctx, form.args[0], sink, hint=ctx.return_type)
        emit(sink, Opcode.RETURN, operands=[value])
        return None

    def _lower_do(self, ctx, form: Apply, sink, discard, hint) -> Value | None:
        if not form.args:
            raise ArityError("'do' needs at least one form", form)
        for child in form.args[:-1]:
            self.lower_expr(ctx, child, sink, discard=True)
        return self.lower_expr(ctx, form.args[-1], sink, discard=discard, hint=hint)

    # ── control flow ─────────────────────────────────────────────

    def _lower_while(self, ctx, form: Apply, sink, discard, hint) -> None:
        if not form.args:
            raise ArityError("'while' needs a condition", form)
        cond, *body = form.args
        test_label = ctx.fresh_label(constants.WHILE_TEST_LABEL_PREFIX)
        exit_label = ctx.fresh_label(constants.WHILE_EXIT_LABEL_PREFIX)

        emit(sink, Opcode.LABEL, label=test_label)
        cond_slot = self.lower_to_slot(ctx, cond, sink, hint=ctx.config.condition_type)
        emit(sink, Opcode.BRANCH_NOT, operands=[cond_slot], label=exit_label)
        for child in body:
            self.lower_expr(ctx, child, sink, discard=True)
        emit(sink, Opcode.JUMP, label=test_label)
        emit(sink, Opcode.LABEL, label=exit_label)
        return None

    def _lower_if(self, ctx, form: Apply, sink, discard, hint) -> Slot:
        """Lower ``(if cond a b)``.

        The branch is taken when the condition holds and lands on the arm
        compiled second (``b``); ``a`` is the fall-through path.
        """
        if len(form.args) != 3:
            raise ArityError("'if' takes a condition and exactly two arms", form)
        cond, first, second = form.args
        else_label = ctx.fresh_label(constants.IF_ELSE_LABEL_PREFIX)
        end_label = ctx.fresh_label(constants.IF_END_LABEL_PREFIX)

        cond_slot = self.lower_to_slot(ctx, cond, sink, hint=ctx.config.condition_type)
        result = ctx.new_slot()
        emit(sink, Opcode.BIND, operands=[result, hint or ctx.config.default_type])
        emit(sink, Opcode.BRANCH, operands=[cond_slot], label=else_label)

        value = self.lower_expr(ctx, first, sink, discard=discard, hint=hint)
        if value is not None:
            emit(sink, Opcode.MOVE, dest=result, operands=[value])
        emit(sink, Opcode.JUMP, label=end_label)

        emit(sink, Opcode.LABEL, label=else_label)
        value = self.lower_expr(ctx, second, sink, discard=discard, hint=hint)
        if value is not None:
            emit(sink, Opcode.MOVE, dest=result, operands=[value])
        emit(sink, Opcode.LABEL, label=end_label)
        return result

    # ── backend primitives ───────────────────────────────────────

    def _lower_ir(self, ctx, form: Apply, sink, discard, hint) -> None:
        for raw in form.args:
            if not isinstance(raw, Apply) or not raw.operator:
                raise UnsupportedForm("Raw IR must be an operator form", raw)
            emit(
                sink,
                Opcode.RAW,
                operands=[raw.operator] + [to_datum(arg) for arg in raw.args],
            )
        return None

    def _lower_syscall(self, ctx, form: Apply, sink, discard, hint) -> Slot | None:
        if not form.args:
            raise ArityError("'syscall' needs a syscall number", form)
        arg_slots = [self.lower_to_slot(ctx, arg, sink) for arg in form.args]
        dest = None if discard else ctx.new_slot()
        emit(
            sink,
            Opcode.SYSCALL,
            dest=dest,
            operands=[ctx.config.syscall_convention] + arg_slots,
        )
        return dest

    def _lower_call(
        self, ctx: FunctionContext, form: Apply, sink, discard: bool
    ) -> Slot | None:
        args = [self.lower_value(ctx, arg, sink) for arg in form.args]
        dest = None if discard else ctx.new_slot()
        target = TypedConst(type=constants.POINTER_TYPE, value=form.operator)
        emit(
            sink,
            Opcode.CALL,
            dest=dest,
            operands=[ctx.config.call_convention, target] + args,
        )
        logger.debug("Lowered call to %s (%d args)", form.operator, len(args))
        return dest
