import pytest
from pydantic import ValidationError

from csvgrammar.models import Diagnostic, Document, ErrorKind, ParseResult
from csvgrammar.parser import Parser, parse_document
from csvgrammar.rules import ESCAPES, QUOTE_ESCAPES, resolve_escape


def test_escape_table_entries():
    assert dict(ESCAPES) == {
        '"': '"', "'": "'", "\\": "\\", "/": "/",
        "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t",
    }
    assert dict(QUOTE_ESCAPES) == {'"': '"'}

def test_escape_tables_are_read_only():
    with pytest.raises(TypeError):
        ESCAPES["x"] = "y"

def test_resolve_escape():
    assert resolve_escape("n") == "\n"
    assert resolve_escape('"', QUOTE_ESCAPES) == '"'
    with pytest.raises(KeyError):
        resolve_escape("n", QUOTE_ESCAPES)
    with pytest.raises(KeyError):
        resolve_escape("q")

def test_diagnostic_position_on_later_line():
    parser = Parser('a,b\nc,"d', source="data.csv")
    diagnostic = parser.diagnostic(ErrorKind.UNTERMINATED_QUOTE, "closing quote", offset=8)
    assert (diagnostic.line, diagnostic.column) == (2, 5)
    assert diagnostic.context == 'c,"d'
    assert diagnostic.source == "data.csv"

def test_diagnostic_render_points_at_column():
    with pytest.raises(ValueError) as info:
        parse_document('a,b\nc,"d', source="data.csv")
    lines = info.value.diagnostic.render().splitlines()
    assert lines[0] == "data.csv:2:5: error: expected closing quote [UnterminatedQuote]"
    assert lines[1] == '2 | c,"d'
    assert lines[2] == " " * 8 + "^"

def test_diagnostic_context_excludes_crlf():
    with pytest.raises(ValueError) as info:
        parse_document("x\r\ny,\r\nz")
    diagnostic = info.value.diagnostic
    assert diagnostic.kind is ErrorKind.TRAILING_SEPARATOR
    assert (diagnostic.line, diagnostic.column) == (2, 3)
    assert diagnostic.context == "y,"

def test_diagnostic_serializes_kind_by_name():
    diagnostic = Diagnostic(
        kind=ErrorKind.TRAILING_INPUT, offset=0, line=1, column=1, expected="end of input"
    )
    assert diagnostic.model_dump(mode="json")["kind"] == "TrailingInput"

def test_document_is_frozen():
    document = parse_document("a,b")
    with pytest.raises(ValidationError):
        document.rows = ()

def test_document_rejects_empty_row():
    with pytest.raises(ValidationError):
        Document(rows=[["a"], []])

def test_document_to_text_rejoins_with_commas():
    document = parse_document('a,"b,c"\nd')
    assert document.to_text() == "a,b,c\nd"

def test_parse_result_holds_exactly_one_outcome():
    with pytest.raises(ValidationError):
        ParseResult()
    with pytest.raises(ValidationError):
        ParseResult(
            document=Document(),
            diagnostic=Diagnostic(
                kind=ErrorKind.TRAILING_INPUT, offset=0, line=1, column=1, expected="x"
            ),
        )
