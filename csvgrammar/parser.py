"""
Recursive-descent parser for the field/row/document grammar.

    document := (row (newline row)*)? newline* EOF
    row      := field ("," field)*
    field    := quoted | unquoted
    quoted   := '"' (char | '\\' trigger | '""')* '"'
    unquoted := (run | '\\' trigger)+

Each rule is a method on Parser that returns the resolved value or raises
CsvParseError. The parser never backtracks: the closing quote of a quoted
field is told apart from a doubled quote by peeking one character ahead.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from .models import CsvParseError, Diagnostic, Document, ErrorKind, ParseResult
from .rules import (
    DEFAULT_SOURCE,
    ESCAPE,
    ESCAPES,
    NEWLINE_CHARS,
    QUOTE,
    QUOTE_ESCAPES,
    SEPARATOR,
    is_control,
    resolve_escape,
)

logger = logging.getLogger(__name__)

_CONTROL = r"\x00-\x1f\x7f"
_QUOTED_RUN = re.compile(r'[^"\\' + _CONTROL + r"]+")
_UNQUOTED_RUN = re.compile(r"[^,\\" + _CONTROL + r"]+")
_TRAILING_NEWLINES = re.compile(r"[\r\n]*\Z")
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

_TRIGGERS = "".join(ESCAPES)


class Parser:
    """Parse state for a single buffer. Not shared between calls."""

    def __init__(self, text: str, source: str = DEFAULT_SOURCE):
        self.text = text
        self.source = source
        self.pos = 0

    def parse_document(self) -> Document:
        rows = []
        while not self._only_newlines_left():
            if rows:
                if self._peek() not in NEWLINE_CHARS:
                    self.fail(ErrorKind.TRAILING_INPUT, "',' or newline")
                self._consume_newline()
            rows.append(self.parse_row())
        self.pos = len(self.text)
        return Document(rows=rows)

    def parse_row(self) -> Tuple[str, ...]:
        fields = [self.parse_field()]
        while self._peek() == SEPARATOR:
            self.pos += 1
            if self._at_row_boundary():
                self.fail(ErrorKind.TRAILING_SEPARATOR, "field after ','")
            fields.append(self.parse_field())
        return tuple(fields)

    def parse_field(self) -> str:
        if self._peek() == QUOTE:
            return self._parse_quoted()
        return self._parse_unquoted()

    def expect_end(self) -> None:
        if self.pos != len(self.text):
            self.fail(ErrorKind.TRAILING_INPUT, "end of input")

    def _parse_quoted(self) -> str:
        self.pos += 1
        parts = []
        while True:
            run = _QUOTED_RUN.match(self.text, self.pos)
            if run:
                parts.append(run.group())
                self.pos = run.end()
                continue

            char = self._peek()
            if char is None or is_control(char):
                self.fail(ErrorKind.UNTERMINATED_QUOTE, "closing quote")
            if char == ESCAPE:
                parts.append(self._parse_escape())
            elif self._peek(1) == QUOTE:
                parts.append(resolve_escape(QUOTE, QUOTE_ESCAPES))
                self.pos += 2
            else:
                self.pos += 1
                return "".join(parts)

    def _parse_unquoted(self) -> str:
        start = self.pos
        parts = []
        while True:
            run = _UNQUOTED_RUN.match(self.text, self.pos)
            if run:
                parts.append(run.group())
                self.pos = run.end()
            elif self._peek() == ESCAPE:
                parts.append(self._parse_escape())
            else:
                break
        if self.pos == start:
            self.fail(ErrorKind.EMPTY_UNQUOTED_FIELD, "field (write an empty value as \"\")")
        return "".join(parts)

    def _parse_escape(self) -> str:
        trigger = self._peek(1)
        try:
            literal = resolve_escape(trigger)
        except KeyError:
            self.fail(
                ErrorKind.UNKNOWN_ESCAPE,
                f"escape character after '\\' (one of {_TRIGGERS})",
                offset=self.pos + 1,
            )
        self.pos += 2
        return literal

    def _peek(self, ahead: int = 0) -> Optional[str]:
        index = self.pos + ahead
        if index < len(self.text):
            return self.text[index]
        return None

    def _at_row_boundary(self) -> bool:
        char = self._peek()
        return char is None or char in NEWLINE_CHARS

    def _consume_newline(self) -> None:
        if self.text.startswith("\r\n", self.pos):
            self.pos += 2
        else:
            self.pos += 1

    def _only_newlines_left(self) -> bool:
        return _TRAILING_NEWLINES.match(self.text, self.pos) is not None

    def diagnostic(self, kind: ErrorKind, expected: str, offset: Optional[int] = None) -> Diagnostic:
        if offset is None:
            offset = self.pos
        offset = min(offset, len(self.text))
        text = self.text

        line_start = max(text.rfind("\n", 0, offset), text.rfind("\r", 0, offset)) + 1
        line_end = _LINE_BREAK.search(text, offset)
        context = text[line_start:line_end.start() if line_end else len(text)]

        return Diagnostic(
            kind=kind,
            source=self.source,
            offset=offset,
            line=len(_LINE_BREAK.findall(text, 0, offset)) + 1,
            column=offset - line_start + 1,
            expected=expected,
            context=context,
        )

    def fail(self, kind: ErrorKind, expected: str, offset: Optional[int] = None):
        raise CsvParseError(self.diagnostic(kind, expected, offset))


def parse_document(text: str, source: str = DEFAULT_SOURCE) -> Document:
    """
    Parse a whole buffer into a Document.

    Raises CsvParseError carrying a Diagnostic on the first syntax error.
    """
    try:
        document = Parser(text, source).parse_document()
    except CsvParseError as exc:
        logger.debug("parse of %s failed: %s", source, exc)
        raise
    logger.debug("parsed %s: %d row(s)", source, document.row_count)
    return document


def parse_row(text: str, source: str = DEFAULT_SOURCE) -> Tuple[str, ...]:
    parser = Parser(text, source)
    row = parser.parse_row()
    parser.expect_end()
    return row


def parse_field(text: str, source: str = DEFAULT_SOURCE) -> str:
    parser = Parser(text, source)
    value = parser.parse_field()
    parser.expect_end()
    return value


def try_parse(text: str, source: str = DEFAULT_SOURCE) -> ParseResult:
    """Like parse_document, but returns the diagnostic instead of raising."""
    try:
        return ParseResult(document=parse_document(text, source))
    except CsvParseError as exc:
        return ParseResult(diagnostic=exc.diagnostic)
