"""Markdown rendering of a cleaned content tree."""

from __future__ import annotations

import re

from bs4 import Tag
from markdownify import ATX, MarkdownConverter

from pagetext.errors import SerializationError

_BLANK_LINE_RUN_RE = re.compile(r"\n{3,}")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)

_LANGUAGE_PREFIXES: tuple[str, ...] = ("language-", "lang-")


def _code_language(pre: Tag) -> str:
    """Fence language from a ``language-*``/``lang-*`` class on ``<pre>`` or its ``<code>``."""
    candidates = [pre]
    code = pre.find("code")
    if isinstance(code, Tag):
        candidates.append(code)
    for el in candidates:
        for cls in el.get("class") or ():
            for prefix in _LANGUAGE_PREFIXES:
                if cls.startswith(prefix):
                    return cls[len(prefix):]
    return ""


def _converter() -> MarkdownConverter:
    return MarkdownConverter(
        heading_style=ATX,
        bullets="-",
        code_language_callback=_code_language,
    )


def tag_to_markdown(node: Tag) -> str:
    """Render the cleaned tree rooted at *node* as Markdown.

    Headings are ATX style and bullets use ``-``.  Class attributes are
    still present on the cleaned tree, so fenced code blocks pick up their
    language.

    Raises:
        SerializationError: if markdownify fails on the tree.
    """
    try:
        md = _converter().convert_soup(node)
    except Exception as exc:
        raise SerializationError(
            f"Markdown conversion failed: {exc}", output_format="markdown",
        ) from exc

    md = _TRAILING_SPACE_RE.sub("", md)
    return _BLANK_LINE_RUN_RE.sub("\n\n", md).strip()
