"""Boilerplate removal by building a filtered copy of a subtree.

The source tree is only ever read.  :func:`clean_content` returns a new,
detached tree so that one parsed document can be extracted several times
with different configurations.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PageElement, PreformattedString

from pagetext.extractors.hints import (
    BOILERPLATE_TOKENS,
    HEADING_TAGS,
    INVISIBLE_TAGS,
    REFERENCE_SECTION_TITLES,
    REMOVAL_TAGS,
    TEXT_BLOCK_TAGS,
    VOID_TAGS,
    has_token,
)
from pagetext.settings import ExtractionConfig

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_DISPLAY_NONE_RE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)

# Stands in for a <pre> block while the surrounding text is normalized
_PRE_MARK = "\x00"
_PRE_MARK_RE = re.compile(r"\x00(\d+)\x00")

# Never dropped by the class/id rule: WordPress and friends put words like
# "comments-open" on <body>.
_CLASS_RULE_EXEMPT: frozenset[str] = frozenset({"html", "body"})

# Kept even without text content
_KEEP_EMPTY: frozenset[str] = VOID_TAGS | {
    "td", "th", "iframe", "video", "audio", "embed", "object",
}

_URL_ATTRS: dict[str, str] = {"a": "href", "img": "src"}


def is_boilerplate(tag: Tag, config: ExtractionConfig) -> bool:
    """True if the subtree rooted at *tag* should be dropped."""
    name = tag.name
    if name in REMOVAL_TAGS and name not in config.keep_tags:
        return True
    if tag.has_attr("hidden") or _DISPLAY_NONE_RE.search(str(tag.get("style") or "")):
        return True
    if name in _CLASS_RULE_EXEMPT:
        return False
    return has_token(tag, BOILERPLATE_TOKENS)


def _copy_attrs(tag: Tag, base_url: str | None) -> dict:
    attrs: dict = {}
    for key, value in tag.attrs.items():
        attrs[key] = list(value) if isinstance(value, list) else value
    url_attr = _URL_ATTRS.get(tag.name)
    if base_url and url_attr and isinstance(attrs.get(url_attr), str):
        attrs[url_attr] = urljoin(base_url, attrs[url_attr].strip())
    return attrs


# ---------------------------------------------------------------------------
# Reference sections
# ---------------------------------------------------------------------------

def is_wikipedia_page(soup: BeautifulSoup) -> bool:
    """True if og:site_name or the canonical link points at Wikipedia."""
    for meta in soup.find_all("meta", attrs={"property": "og:site_name"}):
        if "wikipedia" in str(meta.get("content") or "").lower():
            return True
    for link in soup.find_all("link", attrs={"rel": "canonical"}):
        if "wikipedia.org" in str(link.get("href") or "").lower():
            return True
    return False


def _heading_level(node: PageElement) -> int | None:
    if not isinstance(node, Tag):
        return None
    if node.name in HEADING_TAGS:
        return int(node.name[1])
    # MediaWiki wraps section headings: <div class="mw-heading mw-heading2"><h2>
    if any(str(c).startswith("mw-heading") for c in node.get("class") or ()):
        inner = node.find(sorted(HEADING_TAGS))
        if isinstance(inner, Tag):
            return int(inner.name[1])
    return None


def _is_reference_heading(node: Tag) -> bool:
    title = " ".join(node.get_text(" ").split()).lower()
    return title.startswith(REFERENCE_SECTION_TITLES)


def drop_reference_sections(children: list[PageElement]) -> list[PageElement]:
    """Remove reference-section headings and their siblings up to the next
    heading of the same or a higher level."""
    kept: list[PageElement] = []
    skip_level: int | None = None
    for child in children:
        level = _heading_level(child)
        if level is not None:
            if skip_level is not None and level <= skip_level:
                skip_level = None
            if skip_level is None and _is_reference_heading(child):
                skip_level = level
        if skip_level is None:
            kept.append(child)
    return kept


# ---------------------------------------------------------------------------
# Tree building
# ---------------------------------------------------------------------------

class _TreeBuilder:
    """Copies the kept parts of a subtree into a new tree.

    Works from a stack of (source node, new parent) pairs so that deeply
    nested markup cannot exhaust the interpreter stack.
    """

    def __init__(self, config: ExtractionConfig, base_url: str | None) -> None:
        self._config = config
        self._base_url = base_url
        # Factory document for new tags; the built tree is not attached to it
        self._factory = BeautifulSoup("", "lxml")

    def build_root(self, root: Tag) -> Tag:
        new_root = self._factory.new_tag(root.name, attrs=_copy_attrs(root, self._base_url))
        stack: list[tuple[PageElement, Tag]] = [
            (child, new_root) for child in reversed(self._children(root))
        ]
        while stack:
            node, parent = stack.pop()
            element, descend = self._copy(node)
            if element is not None:
                parent.append(element)
            if descend:
                # Unwrapped elements hand their children to the parent
                target = element if isinstance(element, Tag) else parent
                stack.extend((child, target) for child in reversed(self._children(node)))
        return new_root

    def _children(self, tag: Tag) -> list[PageElement]:
        children = list(tag.children)
        if self._config.skip_reference_sections:
            return drop_reference_sections(children)
        return children

    def _copy(self, node: PageElement) -> tuple[PageElement | None, bool]:
        """Return the copy of *node* alone and whether to descend into it."""
        if isinstance(node, PreformattedString):
            # Comments, CDATA, doctype, processing instructions
            return None, False
        if isinstance(node, NavigableString):
            return NavigableString(str(node)), False
        if not isinstance(node, Tag):
            return None, False

        config = self._config
        name = node.name
        if is_boilerplate(node, config):
            return None, False
        if name == "table" and not config.include_tables:
            return None, False
        if name == "img" and not config.include_images:
            alt = " ".join(str(node.get("alt") or "").split())
            return (NavigableString(f" {alt} ") if alt else None), False
        if name == "a" and not config.include_links:
            return None, True
        return self._factory.new_tag(name, attrs=_copy_attrs(node, self._base_url)), True


def _is_empty_leaf(tag: Tag) -> bool:
    if tag.name in _KEEP_EMPTY:
        return False
    if tag.find(True) is not None:
        return False
    return not tag.get_text().strip()


def prune_empty(root: Tag) -> int:
    """Drop empty leaves under *root* until none remain; return passes made.

    Removing a leaf can turn its parent into an empty leaf, so this runs
    until a pass removes nothing.  Each pass shrinks the tree, which bounds
    the loop.
    """
    passes = 0
    while True:
        empty = [el for el in root.find_all(True) if _is_empty_leaf(el)]
        if not empty:
            return passes
        passes += 1
        for el in empty:
            el.decompose()


def clean_content(
    root: Tag,
    config: ExtractionConfig | None = None,
    *,
    base_url: str | None = None,
) -> Tag:
    """Return a filtered copy of *root* with boilerplate removed.

    Drops removal-set tags and boilerplate class/id subtrees, unwraps links
    and images the configuration excludes, drops reference sections when
    ``skip_reference_sections`` is set, resolves relative URLs against
    *base_url*, then prunes empty leaves.  *root* itself is always kept.
    """
    cfg = config or ExtractionConfig()
    cleaned = _TreeBuilder(cfg, base_url).build_root(root)
    passes = prune_empty(cleaned)
    logger.debug("cleaned <%s>: %d prune pass(es)", root.name, passes)
    return cleaned


# ---------------------------------------------------------------------------
# Text flattening
# ---------------------------------------------------------------------------

def _collect_text(node: Tag, parts: list[str], preformatted: list[str]) -> None:
    # Plain str entries on the stack are separators; everything else is a node
    stack: list[PageElement | str] = list(reversed(list(node.children)))
    while stack:
        item = stack.pop()
        if not isinstance(item, PageElement):
            parts.append(item)
        elif isinstance(item, Tag):
            name = item.name
            if name in INVISIBLE_TAGS:
                continue
            if name == "br":
                parts.append("\n")
            elif name == "img":
                alt = str(item.get("alt") or "")
                if alt.strip():
                    parts.append(f" {alt} ")
            elif name == "pre":
                code = item.get_text().strip("\n")
                if code.strip():
                    preformatted.append(code)
                    parts.append(f"\n\n{_PRE_MARK}{len(preformatted) - 1}{_PRE_MARK}\n\n")
            elif name in TEXT_BLOCK_TAGS:
                parts.append("\n\n")
                stack.append("\n\n")
                stack.extend(reversed(list(item.children)))
            else:
                stack.extend(reversed(list(item.children)))
        elif isinstance(item, NavigableString) and not isinstance(item, PreformattedString):
            parts.append(_WS_RE.sub(" ", str(item)))


def flatten_text(node: Tag) -> str:
    """Render *node* as plain text.

    Block elements become paragraphs separated by one blank line, inline
    markup is unwrapped, whitespace runs collapse to one space and the
    result is trimmed.  ``<pre>`` blocks keep their line breaks and
    indentation.
    """
    parts: list[str] = []
    preformatted: list[str] = []
    _collect_text(node, parts, preformatted)
    lines = [" ".join(line.split()) for line in "".join(parts).split("\n")]
    text = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", "\n".join(lines))
    if preformatted:
        text = _PRE_MARK_RE.sub(lambda m: preformatted[int(m.group(1))], text)
    return text.strip()


def cleaned_text_length(
    root: Tag,
    config: ExtractionConfig | None = None,
) -> int:
    """Length of the text *root* would yield after cleaning."""
    return len(flatten_text(clean_content(root, config)))
