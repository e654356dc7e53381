"""Tests for `if` / `while` lowering into labels, branches and jumps."""

import pytest

from lispir.errors import ArityError
from lispir.ir import IRInstruction, Opcode, Slot, TypedConst

from tests.unit.conftest import declare, find_all, lower, make_context, opcodes


def _labels(instructions: list[IRInstruction]) -> list[str]:
    return [inst.label for inst in instructions if inst.opcode == Opcode.LABEL]


def _targets(instructions: list[IRInstruction]) -> list[str]:
    return [
        inst.label
        for inst in instructions
        if inst.opcode in (Opcode.BRANCH, Opcode.BRANCH_NOT, Opcode.JUMP)
    ]


def _assert_labels_well_formed(instructions: list[IRInstruction]):
    labels = _labels(instructions)
    targets = _targets(instructions)
    assert len(labels) == len(set(labels))
    for label in labels:
        assert label in targets


class TestWhile:
    def test_layout(self):
        ctx = make_context()
        declare(ctx, "i")
        result, ir = lower("(while (< i 10) (set i (+ 1 i)))", ctx)
        assert result is None
        assert opcodes(ir) == [
            Opcode.LABEL,
            Opcode.BIND,
            Opcode.LT,
            Opcode.BRANCH_NOT,
            Opcode.BIND,
            Opcode.ADD,
            Opcode.MOVE,
            Opcode.JUMP,
            Opcode.LABEL,
        ]
        test_label, exit_label = _labels(ir)
        assert ir[3].label == exit_label
        assert ir[3].operands == [Slot(index=1)]
        assert ir[7].label == test_label

    def test_two_unique_labels(self):
        ctx = make_context()
        declare(ctx, "i")
        _, ir = lower("(while (< i 3) (puts i))", ctx)
        assert len(set(_labels(ir))) == 2
        _assert_labels_well_formed(ir)

    def test_body_results_are_discarded(self):
        ctx = make_context()
        declare(ctx, "c")
        _, ir = lower("(while c (tick) (tock))", ctx)
        assert all(call.dest is None for call in find_all(ir, Opcode.CALL))

    def test_constant_condition_is_materialised(self):
        _, ir = lower("(while true (tick))")
        bind, move, branch = ir[1], ir[2], ir[3]
        assert bind.operands == [Slot(index=0), "boolean"]
        assert move.operands == [TypedConst(type="boolean", value=True)]
        assert branch.opcode == Opcode.BRANCH_NOT
        assert branch.operands == [Slot(index=0)]

    def test_condition_is_required(self):
        with pytest.raises(ArityError):
            lower("(while)")

    def test_nested_loops_use_distinct_labels(self):
        ctx = make_context()
        declare(ctx, "a", "b")
        _, ir = lower("(while a (while b (tick)))", ctx)
        assert len(set(_labels(ir))) == 4
        _assert_labels_well_formed(ir)


class TestIf:
    def test_layout(self):
        ctx = make_context()
        declare(ctx, "x")
        result, ir = lower("(if (< x 0) 1 2)", ctx, hint="int")
        assert result == Slot(index=2)
        else_label, end_label = _labels(ir)
        assert [str(inst) for inst in ir] == [
            "bind $1 boolean",
            "$1 = lt $0 (long 0)",
            "bind $2 int",
            f"branch $1 {else_label}",
            "$2 = move (int 1)",
            f"jump {end_label}",
            f"{else_label}:",
            "$2 = move (int 2)",
            f"{end_label}:",
        ]

    def test_branch_taken_skips_the_first_arm(self):
        ctx = make_context()
        declare(ctx, "c")
        _, ir = lower("(if c (first) (second))", ctx)
        (branch,) = find_all(ir, Opcode.BRANCH)
        target = next(
            i for i, inst in enumerate(ir)
            if inst.opcode == Opcode.LABEL and inst.label == branch.label
        )
        callee_after_target = next(
            inst.operands[1].value for inst in ir[target:] if inst.opcode == Opcode.CALL
        )
        assert callee_after_target == "second"

    def test_result_type_defaults_to_int(self):
        ctx = make_context()
        declare(ctx, "c")
        _, ir = lower("(if c 1 2)", ctx)
        assert ir[0].operands == [Slot(index=1), "int"]

    def test_result_bound_to_hint(self):
        ctx = make_context()
        declare(ctx, "c")
        _, ir = lower("(if c 1 2)", ctx, hint="double")
        assert ir[0].operands == [Slot(index=1), "double"]

    def test_arm_without_value_gets_no_move(self):
        ctx = make_context()
        declare(ctx, "c")
        _, ir = lower("(if c (return 1) 2)", ctx)
        moves = find_all(ir, Opcode.MOVE)
        assert len(moves) == 1
        assert moves[0].operands == [TypedConst(type="long", value=2)]

    def test_two_unique_labels(self):
        ctx = make_context()
        declare(ctx, "c")
        _, ir = lower("(if c 1 2)", ctx)
        assert len(set(_labels(ir))) == 2
        _assert_labels_well_formed(ir)

    @pytest.mark.parametrize("text", ["(if c)", "(if c 1)", "(if c 1 2 3)"])
    def test_arity(self, text):
        ctx = make_context()
        declare(ctx, "c")
        with pytest.raises(ArityError):
            lower(text, ctx)

    def test_if_inside_while(self):
        ctx = make_context()
        declare(ctx, "i")
        _, ir = lower("(while (< i 5) (set i (if (= i 2) 0 (+ i 1))))", ctx)
        assert len(_labels(ir)) == 4
        _assert_labels_well_formed(ir)
