"""Surface forms: the parsed units of the input language.

Forms are a closed sum type: every form is exactly one of ``Literal``,
``Symbol``, ``Apply`` or ``Vector``.  They are frozen once the reader
produces them; nothing downstream mutates a form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from . import constants


@dataclass(frozen=True)
class Literal:
    value: str | int | float | bool

    def __str__(self) -> str:
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        if isinstance(self.value, str):
            return f'"{self.value}"'
        return str(self.value)


@dataclass(frozen=True)
class Symbol:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Apply:
    """Operator application: ``(head arg ...)``."""

    items: tuple[Form, ...] = ()

    @property
    def head(self) -> Form | None:
        return self.items[0] if self.items else None

    @property
    def args(self) -> tuple[Form, ...]:
        return self.items[1:]

    @property
    def operator(self) -> str:
        """Name of the head symbol, or ``""`` when the head is not a symbol."""
        head = self.head
        return head.name if isinstance(head, Symbol) else ""

    def __str__(self) -> str:
        return "(" + " ".join(str(item) for item in self.items) + ")"


@dataclass(frozen=True)
class Vector:
    """Bracketed sequence: ``[item ...]``, used for parameter and field lists."""

    items: tuple[Form, ...] = ()

    def __str__(self) -> str:
        return "[" + " ".join(str(item) for item in self.items) + "]"


Form = Union[Literal, Symbol, Apply, Vector]


def split_typed_name(text: str) -> tuple[str, str | None]:
    """Split ``name:type`` into ``("name", "type")``; untyped names give ``None``."""
    name, sep, type_name = text.partition(constants.TYPE_SEPARATOR)
    return name, (type_name if sep and type_name else None)


def to_datum(form: Form) -> Any:
    """Convert a form to plain Python data (symbols become strings)."""
    if isinstance(form, Literal):
        return form.value
    if isinstance(form, Symbol):
        return form.name
    return [to_datum(item) for item in form.items]
