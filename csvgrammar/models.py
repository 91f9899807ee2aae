from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .rules import DEFAULT_SOURCE, SEPARATOR


class ErrorKind(str, Enum):
    UNTERMINATED_QUOTE = "UnterminatedQuote"
    UNKNOWN_ESCAPE = "UnknownEscape"
    EMPTY_UNQUOTED_FIELD = "EmptyUnquotedField"
    TRAILING_SEPARATOR = "TrailingSeparator"
    TRAILING_INPUT = "TrailingInput"


class Diagnostic(BaseModel):
    """
    Terminal parse failure.

    offset is a 0-based character offset into the decoded text; line and
    column are 1-based. context is the source line holding the offset,
    without its line terminator.
    """

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    source: str = DEFAULT_SOURCE
    offset: int = Field(ge=0)
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    expected: str
    context: str = ""

    def summary(self) -> str:
        return (
            f"{self.source}:{self.line}:{self.column}: "
            f"error: expected {self.expected} [{self.kind.value}]"
        )

    def render(self) -> str:
        gutter = f"{self.line} | "
        caret = " " * (len(gutter) + self.column - 1) + "^"
        return "\n".join([self.summary(), gutter + self.context, caret])


class CsvParseError(ValueError):
    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.summary())


class Document(BaseModel):
    model_config = ConfigDict(frozen=True)

    rows: Tuple[Tuple[str, ...], ...] = ()

    @field_validator("rows")
    @classmethod
    def _rows_not_empty(cls, rows):
        for index, row in enumerate(rows):
            if not row:
                raise ValueError(f"row {index} has no fields")
        return rows

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_text(self) -> str:
        # Plain re-join; values are not re-quoted.
        return "\n".join(SEPARATOR.join(row) for row in self.rows)


class ParseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    document: Optional[Document] = None
    diagnostic: Optional[Diagnostic] = None

    @model_validator(mode="after")
    def _exactly_one(self):
        if (self.document is None) == (self.diagnostic is None):
            raise ValueError("exactly one of document or diagnostic must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.document is not None


class HarnessCase(BaseModel):
    path: str
    expected_rows: int = Field(ge=0)


class HarnessOutcome(BaseModel):
    case: HarnessCase
    parsed_rows: Optional[int] = None
    passed: bool = False
    rendered: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None


class ParseResponse(BaseModel):
    source: str
    encoding: str = Field(default="utf-8")
    sha256: str
    row_count: int = 0
    rows: List[List[str]] = Field(default_factory=list)
    matches_expected: Optional[bool] = Field(default=None, examples=[None])


class HealthResponse(BaseModel):
    ok: bool = True
