"""Tests for CFG builder and Mermaid export."""

from lispir.api import build_cfg_from_source
from lispir.cfg import _collapse_inst_lines, build_cfg, cfg_to_mermaid
from lispir.ir import IRInstruction, Opcode, Slot

COUNTER = """\
(defn f:int []
  (var i:int 0)
  (while (< i 10)
    (set i (+ 1 i)))
  (return i))
"""


def _make_instructions(*specs):
    """Helper: build IRInstruction list from (opcode, kwargs) tuples."""
    return [IRInstruction(opcode=op, **kw) for op, kw in specs]


class TestBuildCfg:
    def test_linear_function_is_one_block(self):
        instructions = _make_instructions(
            (Opcode.LINK_NAME, {"operands": ["f"]}),
            (Opcode.PARAM_COUNT, {"operands": [0]}),
            (Opcode.RETURN, {}),
        )
        cfg = build_cfg(instructions)
        assert list(cfg.blocks) == ["entry"]
        assert cfg.entry == "entry"
        assert cfg.blocks["entry"].successors == []

    def test_loop_blocks(self):
        cfg = build_cfg_from_source(COUNTER)
        test_label, exit_label = [lbl for lbl in cfg.blocks if lbl.startswith("while")]
        body_label = next(lbl for lbl in cfg.blocks if lbl.startswith("__block_"))

        assert cfg.blocks["entry"].successors == [test_label]
        assert cfg.blocks[test_label].successors == [exit_label, body_label]
        assert cfg.blocks[body_label].successors == [test_label]
        assert sorted(cfg.blocks[test_label].predecessors) == sorted(["entry", body_label])
        assert cfg.blocks[exit_label].successors == []

    def test_if_blocks(self):
        cfg = build_cfg_from_source("(defn g:int [c:boolean] (return (if c 1 2)))")
        else_label = next(lbl for lbl in cfg.blocks if lbl.startswith("if_else"))
        end_label = next(lbl for lbl in cfg.blocks if lbl.startswith("if_end"))
        then_label = next(lbl for lbl in cfg.blocks if lbl.startswith("__block_"))

        assert cfg.blocks["entry"].successors == [else_label, then_label]
        assert cfg.blocks[then_label].successors == [end_label]
        assert cfg.blocks[else_label].successors == [end_label]
        assert sorted(cfg.blocks[end_label].predecessors) == sorted([then_label, else_label])

    def test_label_instructions_are_not_kept(self):
        cfg = build_cfg_from_source(COUNTER)
        for block in cfg.blocks.values():
            assert all(inst.opcode != Opcode.LABEL for inst in block.instructions)

    def test_str_lists_blocks(self):
        text = str(build_cfg_from_source(COUNTER))
        assert "[entry]" in text
        assert "link_name f" in text


class TestCfgToMermaid:
    def test_header_and_entry_style(self):
        mermaid = cfg_to_mermaid(build_cfg_from_source(COUNTER))
        assert mermaid.startswith("flowchart TD")
        assert "style entry fill:#28a745,color:#fff" in mermaid

    def test_branch_not_edges_are_labelled(self):
        cfg = build_cfg_from_source(COUNTER)
        test_label, exit_label = [lbl for lbl in cfg.blocks if lbl.startswith("while")]
        mermaid = cfg_to_mermaid(cfg)
        assert f'{test_label} -->|"F"| {exit_label}' in mermaid

    def test_branch_edges_are_labelled(self):
        instructions = _make_instructions(
            (Opcode.BRANCH, {"operands": [Slot(index=0)], "label": "else_block"}),
            (Opcode.RETURN, {}),
            (Opcode.LABEL, {"label": "else_block"}),
            (Opcode.RETURN, {}),
        )
        mermaid = cfg_to_mermaid(build_cfg(instructions))
        assert 'entry -->|"T"| else_block' in mermaid
        assert 'entry -->|"F"| __block_1' in mermaid

    def test_comparison_text_is_escaped(self):
        mermaid = cfg_to_mermaid(build_cfg_from_source(COUNTER))
        assert "(long 10)" in mermaid
        assert "<" not in mermaid.replace("<b>", "").replace("</b>", "").replace("<br/>", "")


class TestCollapseInstLines:
    def test_short_list_unchanged(self):
        assert _collapse_inst_lines(["a", "b"], max_lines=4) == ["a", "b"]

    def test_long_list_keeps_terminator(self):
        lines = [f"i{n}" for n in range(10)]
        assert _collapse_inst_lines(lines, max_lines=4) == ["i0", "i1", "... (7 more)", "i9"]
