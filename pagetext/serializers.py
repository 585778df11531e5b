"""Output serializers: text, html, json, xml and markdown.

Every serializer is a pure function of the :class:`ExtractionResult`, so
serializing the same result twice gives identical output.  Failures inside
an encoding library surface as :class:`SerializationError`.
"""

from __future__ import annotations

import html
import json
import logging
import re
from typing import Callable

from bs4 import Tag
from bs4.element import NavigableString, PageElement, PreformattedString
from lxml import etree

from pagetext.errors import SerializationError
from pagetext.extractors.hints import VOID_TAGS
from pagetext.extractors.markdown import tag_to_markdown
from pagetext.items import DocumentSchema, ExtractionResult
from pagetext.settings import OutputFormat

logger = logging.getLogger(__name__)

# Attributes that survive HTML serialization, per tag
_ALLOWED_ATTRS: dict[str, tuple[str, ...]] = {
    "a": ("href",),
    "img": ("src", "alt"),
}

# Characters outside the XML 1.0 Char production
_XML_INVALID_RE = re.compile(
    "[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]",
)

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def to_text(result: ExtractionResult) -> str:
    return result.raw_text


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

def _open_tag(node: Tag) -> str:
    attrs = []
    for attr in _ALLOWED_ATTRS.get(node.name, ()):
        value = node.get(attr)
        if value is None:
            continue
        if isinstance(value, list):
            value = " ".join(value)
        attrs.append(f' {attr}="{html.escape(str(value), quote=True)}"')
    return f"<{node.name}{''.join(attrs)}>"


def to_html(result: ExtractionResult) -> str:
    """Serialize the cleaned tree, keeping only ``a[href]`` and ``img[src, alt]``."""
    out: list[str] = []
    # Plain str entries on the stack are closing tags
    stack: list[PageElement | str] = [result.content]
    while stack:
        item = stack.pop()
        if not isinstance(item, PageElement):
            out.append(item)
        elif isinstance(item, Tag):
            out.append(_open_tag(item))
            if item.name in VOID_TAGS:
                continue
            stack.append(f"</{item.name}>")
            stack.extend(reversed(list(item.children)))
        elif isinstance(item, NavigableString) and not isinstance(item, PreformattedString):
            out.append(html.escape(str(item), quote=False))
    return "".join(out)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def to_json(result: ExtractionResult) -> str:
    """Compact JSON with the keys title, author, date, description, content, url."""
    schema = DocumentSchema.from_result(result)
    try:
        return json.dumps(schema.model_dump(), ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"JSON encoding failed: {exc}", output_format="json") from exc


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------

def _xml_safe(value: str | None) -> str | None:
    if value is None:
        return None
    return _XML_INVALID_RE.sub("", value)


def _paragraphs(text: str) -> list[str]:
    return [p.strip() for p in text.split("\n\n") if p.strip()]


def to_xml(result: ExtractionResult) -> str:
    """``<doc>`` with title, author, date, description, sitename, url,
    categories and one ``<p>`` per paragraph of content."""
    try:
        doc = etree.Element("doc")
        for field in ("title", "author", "date", "description", "sitename", "url"):
            child = etree.SubElement(doc, field)
            child.text = _xml_safe(getattr(result, field))

        categories = etree.SubElement(doc, "categories")
        for category in result.categories:
            etree.SubElement(categories, "category").text = _xml_safe(category)

        content = etree.SubElement(doc, "content")
        for paragraph in _paragraphs(result.raw_text):
            etree.SubElement(content, "p").text = _xml_safe(paragraph)

        body = etree.tostring(doc, encoding="unicode", pretty_print=True)
    except (ValueError, TypeError, etree.LxmlError) as exc:
        raise SerializationError(f"XML encoding failed: {exc}", output_format="xml") from exc
    return _XML_DECLARATION + body


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------

def to_markdown(result: ExtractionResult) -> str:
    return tag_to_markdown(result.content)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

SERIALIZERS: dict[OutputFormat, Callable[[ExtractionResult], str]] = {
    OutputFormat.TEXT: to_text,
    OutputFormat.HTML: to_html,
    OutputFormat.JSON: to_json,
    OutputFormat.XML: to_xml,
    OutputFormat.MARKDOWN: to_markdown,
}


def serialize(result: ExtractionResult, fmt: OutputFormat | str) -> str:
    """Render *result* in *fmt*.

    Raises:
        SerializationError: for an unknown format or an encoder failure.
    """
    try:
        output_format = OutputFormat(fmt)
    except ValueError as exc:
        raise SerializationError(f"Unknown output format: {fmt!r}", output_format=str(fmt)) from exc

    logger.debug("serializing %s as %s", result.url or "<document>", output_format.value)
    return SERIALIZERS[output_format](result)
