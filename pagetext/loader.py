"""HTML loading: raw bytes or text to a BeautifulSoup document."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from pagetext.errors import ParseError

logger = logging.getLogger(__name__)

# lxml recovers from broken markup the way browsers do and is much faster
# than html.parser on large pages.
_PARSER = "lxml"


def load_document(raw: bytes | str, *, encoding: str | None = None) -> BeautifulSoup:
    """Parse *raw* HTML into a document tree.

    Bytes are decoded with BeautifulSoup's encoding detection (``<meta
    charset>``, BOM, then statistical guessing); *encoding* overrides the
    guess.  Broken markup is repaired rather than rejected.

    Raises:
        ParseError: if *raw* is not text or the parser aborts.
    """
    if not isinstance(raw, (bytes, bytearray, str)):
        raise ParseError(f"Cannot parse {type(raw).__name__} as HTML")

    try:
        if isinstance(raw, str):
            soup = BeautifulSoup(raw, _PARSER)
        else:
            soup = BeautifulSoup(bytes(raw), _PARSER, from_encoding=encoding)
    except Exception as exc:
        raise ParseError(f"HTML parser aborted: {exc}") from exc

    if isinstance(raw, (bytes, bytearray)):
        logger.debug("decoded %d bytes as %s", len(raw), soup.original_encoding)
    return soup
