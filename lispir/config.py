"""Compiler configuration (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass

from . import constants


@dataclass(frozen=True)
class CompilerConfig:
    """Groups lowering configuration."""

    call_convention: str = constants.CALL_CONVENTION
    syscall_convention: str = constants.SYSCALL_CONVENTION
    # Declared type for untyped `def`/`var`/`defn` names and untyped `if` results
    default_type: str = constants.DEFAULT_TYPE
    # Type of a bare numeric literal compiled without a hint
    literal_type: str = constants.LITERAL_TYPE
    # Destination type of every n-ary arithmetic fold step
    fold_type: str = constants.DEFAULT_TYPE
    condition_type: str = constants.BOOLEAN_TYPE
