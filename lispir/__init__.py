"""Lisp-like surface language → typed register-machine IR."""

from .api import (  # noqa: F401
    compile_forms,
    compile_source,
    lower_function,
    dump_ir,
    build_cfg_from_source,
    dump_cfg,
    dump_mermaid,
    ir_stats,
    ir_summary,
)
from .reader import read_forms  # noqa: F401
