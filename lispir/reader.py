"""Surface Reader: turns source text into surface forms."""

from __future__ import annotations

import logging
import re

from .errors import ReaderError
from .forms import Apply, Form, Literal, Symbol, Vector

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<COMMENT>;[^\n]*) |
        (?P<OPEN>[(\[]) |
        (?P<CLOSE>[)\]]) |
        (?P<STR>"(?:[^"\\]|\\.)*") |
        (?P<NUM>[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?(?=[\s()\[\]]|$)) |
        (?P<SYM>[^\s()\[\]";]+)
    )""",
    re.VERBOSE,
)

_CLOSERS = {"(": ")", "[": "]"}

_BOOLEANS = {"true": True, "false": False}


_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    '"': '"',
    "\\": "\\",
}


def _unescape(text: str, offset: int) -> str:
    """Strip the quotes from a string token and resolve its backslash escapes."""

    def replace(match: re.Match) -> str:
        escape = match.group(1)
        if escape not in _ESCAPES:
            # +1 for the opening quote
            raise ReaderError(
                f"Unknown escape '\\{escape}'", offset + 1 + match.start()
            )
        return _ESCAPES[escape]

    return _ESCAPE_RE.sub(replace, text[1:-1])


def _parse_number(text: str) -> int | float:
    if any(ch in text for ch in ".eE"):
        return float(text)
    return int(text)


def tokenize(source: str) -> list[tuple[str, str, int]]:
    """Split *source* into ``(kind, text, offset)`` tokens."""
    tokens: list[tuple[str, str, int]] = []
    pos = 0
    while pos < len(source):
        match = _TOKEN_RE.match(source, pos)
        if match is None or match.end() == pos:
            if source[pos:].strip() == "":
                break
            raise ReaderError(f"Unexpected character {source[pos]!r}", pos)
        pos = match.end()
        kind = match.lastgroup
        if kind is None or kind == "COMMENT":
            continue
        tokens.append((kind, match.group(kind), match.start(kind)))
    return tokens


class Reader:
    """Recursive-descent reader over the token stream."""

    def __init__(self, source: str):
        self._tokens = tokenize(source)
        self._pos = 0
        self._length = len(source)

    def read_all(self) -> list[Form]:
        forms: list[Form] = []
        while self._pos < len(self._tokens):
            forms.append(self._read_form())
        logger.debug("Read %d top-level forms", len(forms))
        return forms

    def _read_form(self) -> Form:
        kind, text, offset = self._tokens[self._pos]
        self._pos += 1
        if kind == "OPEN":
            return self._read_sequence(text, offset)
        if kind == "CLOSE":
            raise ReaderError(f"Unbalanced {text!r}", offset)
        if kind == "STR":
            return Literal(_unescape(text, offset))
        if kind == "NUM":
            return Literal(_parse_number(text))
        if text in _BOOLEANS:
            return Literal(_BOOLEANS[text])
        return Symbol(text)

    def _read_sequence(self, opener: str, offset: int) -> Form:
        items: list[Form] = []
        closer = _CLOSERS[opener]
        while True:
            if self._pos >= len(self._tokens):
                raise ReaderError(f"Unterminated {opener!r}", offset)
            kind, text, close_offset = self._tokens[self._pos]
            if kind == "CLOSE":
                if text != closer:
                    raise ReaderError(
                        f"Expected {closer!r} but found {text!r}", close_offset
                    )
                self._pos += 1
                break
            items.append(self._read_form())
        if opener == "[":
            return Vector(tuple(items))
        return Apply(tuple(items))


def read_forms(source: str) -> list[Form]:
    """Read every top-level form in *source*."""
    return Reader(source).read_all()
