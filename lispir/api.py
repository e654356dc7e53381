"""Composable API functions for the lowering pipeline.

Each function corresponds to a CLI workflow (IR dump, --cfg, --mermaid,
--stats) but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging

from .backend import Backend, RecordingBackend
from .cfg import CFG, build_cfg, cfg_to_mermaid
from .config import CompilerConfig
from .emitter import Compiler
from .forms import Form
from .ir import IRInstruction
from .ir_stats import count_opcodes, label_targets, slots_used
from .reader import read_forms

logger = logging.getLogger(__name__)


def compile_forms(
    forms: list[Form],
    backend: Backend | None = None,
    config: CompilerConfig | None = None,
) -> Backend:
    """Compile already-read top-level forms into *backend*.

    Returns:
        The backend that received the lowered units (a fresh
        ``RecordingBackend`` when none was given).
    """
    backend = backend if backend is not None else RecordingBackend()
    Compiler(backend, config).compile_program(forms)
    return backend


def compile_source(
    source: str,
    backend: Backend | None = None,
    config: CompilerConfig | None = None,
) -> Backend:
    """Read and compile every ``deftype``/``defn`` in *source*."""
    logger.info("Compiling source (%d bytes)", len(source))
    return compile_forms(read_forms(source), backend, config)


def lower_function(
    source: str,
    function_name: str = "",
    config: CompilerConfig | None = None,
) -> list[IRInstruction]:
    """Compile *source* and return one function's instruction list.

    Args:
        source: Surface text containing one or more definitions.
        function_name: Function to return; defaults to the last one defined.
        config: Optional compiler configuration.

    Raises:
        ValueError: If *source* defines no functions or not the one asked for.
    """
    backend = RecordingBackend()
    compile_source(source, backend, config)
    if not backend.units:
        raise ValueError("Source defines no functions")
    if not function_name:
        return list(backend.units.values())[-1]
    if function_name not in backend.units:
        raise ValueError(f"Function '{function_name}' not found in source")
    return backend.units[function_name]


def dump_ir(source: str, config: CompilerConfig | None = None) -> str:
    """Compile *source* and return a listing of every lowered function."""
    backend = RecordingBackend()
    compile_source(source, backend, config)
    return backend.dump()


def build_cfg_from_source(
    source: str,
    function_name: str = "",
    config: CompilerConfig | None = None,
) -> CFG:
    """Lower one function and partition it into basic blocks."""
    return build_cfg(lower_function(source, function_name, config))


def dump_cfg(
    source: str, function_name: str = "", config: CompilerConfig | None = None
) -> str:
    return str(build_cfg_from_source(source, function_name, config))


def dump_mermaid(
    source: str, function_name: str = "", config: CompilerConfig | None = None
) -> str:
    return cfg_to_mermaid(build_cfg_from_source(source, function_name, config))


def ir_stats(
    source: str, function_name: str = "", config: CompilerConfig | None = None
) -> dict[str, int]:
    """Lower one function and return opcode frequency counts."""
    return count_opcodes(lower_function(source, function_name, config))


def ir_summary(
    source: str, function_name: str = "", config: CompilerConfig | None = None
) -> dict:
    """Lower one function and summarise opcode counts, slot usage and jump targets."""
    instructions = lower_function(source, function_name, config)
    return {
        "opcodes": count_opcodes(instructions),
        "slots": len(slots_used(instructions)),
        "label_targets": label_targets(instructions),
    }
