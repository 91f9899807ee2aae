"""
Turn raw bytes into text for the parser.

Rules:
- A UTF-8 BOM is honoured and stripped.
- Strict UTF-8 is tried first.
- Otherwise the best guess from charset-normalizer is used.
- If nothing decodes, UnicodeDecodeError propagates to the caller.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from charset_normalizer import from_bytes

from .models import Document
from .parser import parse_document
from .rules import DEFAULT_SOURCE

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"


class DecodedText(NamedTuple):
    text: str
    encoding: str


def decode_bytes(raw: bytes) -> DecodedText:
    if raw.startswith(UTF8_BOM):
        return DecodedText(raw.decode("utf-8-sig"), "utf-8-sig")

    try:
        return DecodedText(raw.decode("utf-8"), "utf-8")
    except UnicodeDecodeError as exc:
        match = from_bytes(raw).best()
        if match is None:
            logger.warning("no encoding detected for %d byte(s); giving up", len(raw))
            raise
        logger.warning(
            "input is not UTF-8 (%s); decoding as %s", exc.reason, match.encoding
        )
        return DecodedText(raw.decode(match.encoding), match.encoding)


def parse_bytes(raw: bytes, source: str = DEFAULT_SOURCE) -> Document:
    decoded = decode_bytes(raw)
    logger.debug("decoded %s as %s", source, decoded.encoding)
    return parse_document(decoded.text, source)
