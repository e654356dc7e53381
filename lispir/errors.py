"""Lowering error taxonomy.

Every error raised while lowering a function carries the offending form so
diagnostics can point at it.  Backend failures use ``BackendError`` and are
never translated into lowering errors.
"""

from __future__ import annotations

from typing import Any


class LoweringError(Exception):
    """Base class for errors detected while lowering surface forms."""

    def __init__(self, message: str, form: Any = None):
        self.message = message
        self.form = form
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.form is None:
            return self.message
        return f"{self.message}: {self.form}"


class UnboundName(LoweringError):
    """Identifier used before it was declared."""


class UnknownType(LoweringError):
    """Type name that was never registered."""


class DuplicateType(LoweringError):
    """Type name registered twice."""


class TypeMismatch(LoweringError):
    """Explicit type assertion does not match a constant's type."""


class ArityError(LoweringError):
    """Wrong number of operands for an operator or special form."""


class UnsupportedForm(LoweringError):
    """Form shape the compiler does not recognise."""


class ReaderError(Exception):
    """Malformed surface text."""

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} at offset {position}")


class BackendError(Exception):
    """Raised by a backend when it rejects an instruction list."""
