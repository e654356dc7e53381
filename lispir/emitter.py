"""Function-Level Emitter: one top-level definition at a time."""

from __future__ import annotations

import logging

from .backend import Backend
from .config import CompilerConfig
from .context import FunctionContext, LabelGenerator, emit
from .errors import ArityError, UnsupportedForm
from .forms import Apply, Form, Symbol, Vector, split_typed_name
from .frontend import ExpressionCompiler
from .ir import IRInstruction, Opcode
from .registry import TypeInfo, build_type_registry
from . import constants

logger = logging.getLogger(__name__)


class Compiler:
    """Drives lowering of a program into a backend.

    Primitive types are declared to the backend on construction.  Each
    ``defn`` gets a fresh ``FunctionContext``, so no slot state leaks
    between functions; labels stay unique across the whole compiler.
    """

    def __init__(self, backend: Backend, config: CompilerConfig | None = None):
        self.backend = backend
        self.config = config or CompilerConfig()
        self.types = build_type_registry()
        self.labels = LabelGenerator()
        self.expressions = ExpressionCompiler()
        for type_info in self.types.types:
            self.backend.declare_type(type_info)

    # ── program ──────────────────────────────────────────────────

    def compile_program(self, forms: list[Form]):
        logger.info("Compiling program (%d top-level forms)", len(forms))
        for form in forms:
            self.compile_toplevel(form)

    def compile_toplevel(self, form: Form):
        op = form.operator if isinstance(form, Apply) else ""
        if op == constants.KW_DEFTYPE:
            self.register_type(form)
        elif op == constants.KW_DEFN:
            self.compile_function(form)
        else:
            raise UnsupportedForm("Expected a 'deftype' or 'defn' form", form)

    # ── types ────────────────────────────────────────────────────

    def register_type(self, form: Apply) -> TypeInfo:
        """Register ``(deftype name [field:type ...])`` and declare it to the backend."""
        if len(form.args) != 2:
            raise ArityError("'deftype' takes a name and a field list", form)
        name_form, fields_form = form.args
        if not isinstance(name_form, Symbol) or not isinstance(fields_form, Vector):
            raise UnsupportedForm("Malformed 'deftype'", form)
        fields: list[tuple[str, str]] = []
        for item in fields_form.items:
            if not isinstance(item, Symbol):
                raise UnsupportedForm("Expected a field declaration", item)
            field_name, field_type = split_typed_name(item.name)
            fields.append((field_name, field_type or self.config.default_type))
        type_id = self.types.register(
            name_form.name, constants.COMPOSITE_BACKEND_NAME, tuple(fields), form
        )
        type_info = self.types.types[type_id]
        self.backend.declare_type(type_info)
        return type_info

    # ── functions ────────────────────────────────────────────────

    def lower_function(self, form: Apply) -> list[IRInstruction]:
        """Lower ``(defn name[:type] [param:type ...] body...)`` to an instruction list."""
        if len(form.args) < 2:
            raise ArityError("'defn' takes a name, a parameter list and a body", form)
        name_form, params_form, *body = form.args
        if not isinstance(name_form, Symbol):
            raise UnsupportedForm("Expected a function name", form)
        if not isinstance(params_form, Vector):
            raise UnsupportedForm("Expected a parameter list", form)

        name, declared = split_typed_name(name_form.name)
        return_type = declared or self.config.default_type
        self.types.id_of(return_type, form)
        logger.info("Lowering function %s -> %s", name, return_type)

        ctx = FunctionContext(
            name=name,
            return_type=return_type,
            types=self.types,
            labels=self.labels,
            config=self.config,
        )
        instructions: list[IRInstruction] = []
        emit(instructions, Opcode.LINK_NAME, operands=[name])
        emit(instructions, Opcode.PARAM_COUNT, operands=[len(params_form.items)])
        self._bind_params(ctx, params_form, instructions)

        for child in body:
            self.expressions.lower_expr(ctx, child, instructions, discard=True)

        logger.debug(
            "Lowered %s: %d instructions, %d slots",
            name,
            len(instructions),
            len(ctx.slots),
        )
        return instructions

    def _bind_params(
        self,
        ctx: FunctionContext,
        params_form: Vector,
        instructions: list[IRInstruction],
    ):
        for param in params_form.items:
            if not isinstance(param, Symbol):
                raise UnsupportedForm("Expected a parameter declaration", param)
            param_name, param_type = split_typed_name(param.name)
            param_type = param_type or self.config.default_type
            ctx.types.id_of(param_type, param)
            slot = ctx.new_slot(param_name)
            emit(instructions, Opcode.BIND, operands=[slot, param_type])

    def compile_function(self, form: Apply) -> list[IRInstruction]:
        """Lower one function and hand it to the backend as a single unit."""
        instructions = self.lower_function(form)
        self.backend.assemble(instructions)
        return instructions
