"""pagetext - extract the readable content and metadata from HTML pages.

Quick usage::

    from pagetext import extract, serialize

    result = extract(open("story.html", "rb").read(), url="https://example.com/story")
    print(result.title, result.date)
    print(serialize(result, "json"))

From a URL::

    from pagetext import fetch

    result = fetch("https://example.com/blog/some-post")
    print(result.raw_text)
"""

from pagetext.core import extract, extract_document, render
from pagetext.errors import (
    FetchError,
    InsufficientContentError,
    PagetextError,
    ParseError,
    SerializationError,
)
from pagetext.fetcher import fetch, fetch_batch, fetch_html
from pagetext.items import ExtractionResult
from pagetext.loader import load_document
from pagetext.serializers import serialize
from pagetext.settings import ExtractionConfig, OutputFormat

__version__ = "0.1.0"
__all__ = [
    "ExtractionConfig",
    "ExtractionResult",
    "FetchError",
    "InsufficientContentError",
    "OutputFormat",
    "PagetextError",
    "ParseError",
    "SerializationError",
    "extract",
    "extract_document",
    "fetch",
    "fetch_batch",
    "fetch_html",
    "load_document",
    "render",
    "serialize",
]
