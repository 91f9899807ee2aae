"""
Lexical rules of the format.

Everything here is a read-only constant shared by every parse call.
"""

from types import MappingProxyType

QUOTE = '"'
SEPARATOR = ","
ESCAPE = "\\"
NEWLINE_CHARS = ("\n", "\r")

DEFAULT_SOURCE = "<string>"
DEFAULT_HARNESS_DIR = "./tests"

# Trigger character after a backslash -> literal character.
ESCAPES = MappingProxyType({
    '"': '"',
    "'": "'",
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
})

# Second quote of a doubled quote inside a quoted field.
QUOTE_ESCAPES = MappingProxyType({'"': '"'})


def is_control(char: str) -> bool:
    code = ord(char)
    return code < 0x20 or code == 0x7F


def resolve_escape(trigger: str, table=ESCAPES) -> str:
    """
    Look up the literal denoted by an escape trigger.

    Raises KeyError when the trigger is not in the table.
    """
    return table[trigger]
