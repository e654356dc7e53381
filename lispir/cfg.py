"""CFG Builder: basic blocks over one function's instruction list."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ir import BRANCH_OPCODES, IRInstruction, Opcode
from . import constants


@dataclass
class BasicBlock:
    label: str
    instructions: list[IRInstruction] = field(default_factory=list)
    successors: list[str] = field(default_factory=list)
    predecessors: list[str] = field(default_factory=list)


@dataclass
class CFG:
    blocks: dict[str, BasicBlock] = field(default_factory=dict)
    entry: str = constants.CFG_ENTRY_LABEL

    def __str__(self) -> str:
        lines = []
        for label, block in self.blocks.items():
            preds = ", ".join(block.predecessors) if block.predecessors else "(none)"
            succs = ", ".join(block.successors) if block.successors else "(none)"
            lines.append(f"[{label}]  preds={preds}  succs={succs}")
            for inst in block.instructions:
                lines.append(f"  {inst}")
            lines.append("")
        return "\n".join(lines)


_TERMINATORS: frozenset[Opcode] = BRANCH_OPCODES | {Opcode.JUMP, Opcode.RETURN}


def build_cfg(instructions: list[IRInstruction]) -> CFG:
    """Partition instructions into basic blocks and wire edges.

    Conditional branches get two successors: the branch target first, then
    the fall-through block.
    """
    cfg = CFG()

    # Phase 1: identify block starts
    block_starts: set[int] = {0}
    for i, inst in enumerate(instructions):
        if inst.opcode == Opcode.LABEL:
            block_starts.add(i)
        elif inst.opcode in _TERMINATORS and i + 1 < len(instructions):
            block_starts.add(i + 1)

    sorted_starts = sorted(block_starts)

    # Phase 2: create blocks
    for si, start in enumerate(sorted_starts):
        end = (
            sorted_starts[si + 1] if si + 1 < len(sorted_starts) else len(instructions)
        )
        block_insts = instructions[start:end]

        if block_insts and block_insts[0].opcode == Opcode.LABEL:
            label = block_insts[0].label
            block_insts = block_insts[1:]  # don't include LABEL pseudo-inst
        elif start == 0:
            label = constants.CFG_ENTRY_LABEL
        else:
            label = f"__block_{start}"

        cfg.blocks[label] = BasicBlock(label=label, instructions=block_insts)

    # Phase 3: wire edges
    block_labels = list(cfg.blocks.keys())
    for i, label in enumerate(block_labels):
        block = cfg.blocks[label]
        fallthrough = block_labels[i + 1] if i + 1 < len(block_labels) else ""
        last = block.instructions[-1] if block.instructions else None

        if last is not None and last.opcode == Opcode.JUMP:
            if last.label in cfg.blocks:
                _add_edge(cfg, label, last.label)
        elif last is not None and last.opcode in BRANCH_OPCODES:
            if last.label in cfg.blocks:
                _add_edge(cfg, label, last.label)
            if fallthrough:
                _add_edge(cfg, label, fallthrough)
        elif last is not None and last.opcode == Opcode.RETURN:
            pass  # no successors
        elif fallthrough:
            _add_edge(cfg, label, fallthrough)

    if block_labels:
        cfg.entry = block_labels[0]

    return cfg


def _escape_mermaid(text: str) -> str:
    """Escape characters that break Mermaid node labels."""
    return text.replace('"', "#quot;").replace("<", "#lt;").replace(">", "#gt;")


def _instruction_summary(inst: IRInstruction, max_len: int = 60) -> str:
    """Return a truncated, Mermaid-safe string for an instruction."""
    raw = str(inst)
    truncated = raw[:max_len] + "..." if len(raw) > max_len else raw
    return _escape_mermaid(truncated)


def _node_id(label: str) -> str:
    """Sanitise a block label into a valid Mermaid node ID."""
    return label.replace(" ", "_").replace("-", "_")


def _collapse_inst_lines(
    lines: list[str], max_lines: int = constants.MERMAID_MAX_NODE_LINES
) -> list[str]:
    """Collapse long instruction lists, preserving the terminator (last line)."""
    if len(lines) <= max_lines:
        return lines
    head_count = max_lines - 2
    hidden = len(lines) - head_count - 1
    return lines[:head_count] + [f"... ({hidden} more)"] + [lines[-1]]


def _node_shape(block: BasicBlock, is_entry: bool) -> tuple[str, str]:
    if is_entry:
        return '(["', '"])'
    last = block.instructions[-1] if block.instructions else None
    if last and last.opcode in BRANCH_OPCODES:
        return '{"', '"}'
    if last and last.opcode == Opcode.RETURN:
        return '(["', '"])'
    return '["', '"]'


def cfg_to_mermaid(cfg: CFG) -> str:
    """Convert a CFG to a Mermaid flowchart TD diagram."""
    lines: list[str] = ["flowchart TD"]

    for label, block in cfg.blocks.items():
        is_entry = label == cfg.entry
        inst_lines = _collapse_inst_lines(
            [_instruction_summary(inst) for inst in block.instructions]
        )
        body = "<br/>".join(inst_lines) if inst_lines else "(empty)"
        node_label = f"<b>{_escape_mermaid(label)}</b><br/>{body}"
        open_delim, close_delim = _node_shape(block, is_entry)
        lines.append(f"    {_node_id(label)}{open_delim}{node_label}{close_delim}")

    for label, block in cfg.blocks.items():
        src = _node_id(label)
        last = block.instructions[-1] if block.instructions else None
        if last is not None and last.opcode in BRANCH_OPCODES and len(block.successors) == 2:
            taken, fallthrough = block.successors
            taken_mark = "T" if last.opcode == Opcode.BRANCH else "F"
            other_mark = "F" if taken_mark == "T" else "T"
            lines.append(f'    {src} -->|"{taken_mark}"| {_node_id(taken)}')
            lines.append(f'    {src} -->|"{other_mark}"| {_node_id(fallthrough)}')
        else:
            for succ in block.successors:
                lines.append(f"    {src} --> {_node_id(succ)}")

    if cfg.entry in cfg.blocks:
        lines.append(f"    style {_node_id(cfg.entry)} fill:#28a745,color:#fff")

    return "\n".join(lines)


def _add_edge(cfg: CFG, src: str, dst: str):
    if dst not in cfg.blocks[src].successors:
        cfg.blocks[src].successors.append(dst)
    if src not in cfg.blocks[dst].predecessors:
        cfg.blocks[dst].predecessors.append(src)
