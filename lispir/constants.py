"""Named constants: eliminates magic strings across the codebase."""

from __future__ import annotations

DEFAULT_TYPE = "int"
LITERAL_TYPE = "long"
STRING_TYPE = "pointer"
BOOLEAN_TYPE = "boolean"
POINTER_TYPE = "pointer"

TYPE_SEPARATOR = ":"

CALL_CONVENTION = "c"
SYSCALL_CONVENTION = "syscall"

SLOT_PREFIX = "$"

WHILE_TEST_LABEL_PREFIX = "while_test"
WHILE_EXIT_LABEL_PREFIX = "while_exit"
IF_ELSE_LABEL_PREFIX = "if_else"
IF_END_LABEL_PREFIX = "if_end"

CFG_ENTRY_LABEL = "entry"
MERMAID_MAX_NODE_LINES = 12

# Surface type name -> backend primitive
PRIMITIVE_TYPES: tuple[tuple[str, str], ...] = (
    ("float", "f32"),
    ("double", "f64"),
    ("int", "i32"),
    ("long", "i64"),
    ("ulong", "u64"),
    ("pointer", "ptr"),
    ("boolean", "i1"),
    ("char", "i8"),
    ("uchar", "u8"),
    ("short", "i16"),
    ("ushort", "u16"),
    ("uint", "u32"),
)

COMPOSITE_BACKEND_NAME = "struct"

KW_THE = "the"
KW_DEF = "def"
KW_VAR = "var"
KW_SET = "set"
KW_RETURN = "return"
KW_DO = "do"
KW_WHILE = "while"
KW_IF = "if"
KW_IR = "ir"
KW_SYSCALL = "syscall"
KW_DEFN = "defn"
KW_DEFTYPE = "deftype"
