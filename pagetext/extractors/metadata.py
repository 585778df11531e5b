"""Deterministic metadata extraction from HTML.

Each field is an ordered chain run through :func:`first_qualifying`:

    title        <title> → og:title → twitter:title → first h1-h3 of the content root
    author       meta author → byline elements → JSON-LD / microdata author
    date         date <meta> tags → <time datetime> → date text in labelled elements
    description  meta description → og:description → twitter:description
    sitename     og:site_name → application-name → JSON-LD publisher

Categories are collected from every source rather than chained.  Missing
fields come back as ``None``; nothing in this module raises for absent data.
"""

from __future__ import annotations

import json
import logging
import re

import dateparser
from bs4 import BeautifulSoup, Tag

from pagetext.extractors.hints import (
    BOILERPLATE_TOKENS,
    BYLINE_TOKENS,
    CATEGORY_CONTAINER_TOKENS,
    DATE_LABEL_TOKENS,
    DATE_META,
    has_token,
    safe_str,
)
from pagetext.extractors.strategies import Strategy, first_qualifying
from pagetext.items import Metadata

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WS_RE = re.compile(r"\s+")
_BY_PREFIX_RE = re.compile(r"^by\b[\s:]*", re.IGNORECASE)

DATE_PATTERN = re.compile(
    r"\d{4}[-/]\d{1,2}[-/]\d{1,2}"
    r"|\d{1,2}[-/]\d{1,2}[-/]\d{4}"
    r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.? \d{1,2}(?:st|nd|rd|th)?,? \d{4}"
    r"|\d{1,2} (?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.? \d{4}",
    re.IGNORECASE,
)

MAX_AUTHOR_LENGTH = 100
MIN_YEAR = 1990
MAX_YEAR = 2099

# Never treated as byline, date or category containers
_PAGE_TAGS: frozenset[str] = frozenset({"html", "head", "body", "meta"})


def _normalize(text: str | None) -> str | None:
    if not text:
        return None
    return _WS_RE.sub(" ", text).strip() or None


def _text_of(tag: Tag) -> str | None:
    return _normalize(tag.get_text(" "))


def normalize_date(raw: str | None) -> str | None:
    """Parse *raw* and return it as ``YYYY-MM-DD``.

    Returns None on failure or when the year falls outside 1990-2099
    (catches epoch defaults like 1970-01-01 and far-future typos).
    """
    raw = _normalize(raw)
    if not raw:
        return None
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
        return None
    if parsed is None or not (MIN_YEAR <= parsed.year <= MAX_YEAR):
        return None
    return parsed.strftime("%Y-%m-%d")


def clean_author(raw: str | None) -> str | None:
    """Strip a leading "By" and reject anything longer than a name list."""
    text = _normalize(raw)
    if not text:
        return None
    text = _BY_PREFIX_RE.sub("", text).strip()
    if not text or len(text) > MAX_AUTHOR_LENGTH:
        return None
    return text


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for v in values:
        lower = v.lower()
        if lower not in seen:
            seen.add(lower)
            unique.append(v)
    return unique


# ---------------------------------------------------------------------------
# <meta> index
# ---------------------------------------------------------------------------

def _meta_index(soup: BeautifulSoup) -> dict[str, list[str]]:
    """Map lower-cased meta keys (property / name / itemprop) to their contents."""
    index: dict[str, list[str]] = {}
    for tag in soup.find_all("meta"):
        if not isinstance(tag, Tag):
            continue
        content = _normalize(safe_str(tag.get("content")))
        if not content:
            continue
        for attr in ("property", "name", "itemprop"):
            key = safe_str(tag.get(attr)).strip().lower()
            if key:
                index.setdefault(key, []).append(content)
    return index


def _meta_first(index: dict[str, list[str]], *keys: str) -> str | None:
    for key in keys:
        values = index.get(key)
        if values:
            return values[0]
    return None


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

_ARTICLE_TYPES: frozenset[str] = frozenset(
    {
        "article",
        "blogging",
        "blogposting",
        "newsarticle",
        "techarticle",
        "scholarlyarticle",
        "liveblogposting",
        "reportage",
    },
)


def _node_types(node: dict) -> set[str]:
    dtype = node.get("@type", "")
    if isinstance(dtype, list):
        return {str(t).lower() for t in dtype}
    return {str(dtype).lower()}


def _extract_jsonld(soup: BeautifulSoup) -> dict:
    """Return the most relevant JSON-LD node on the page.

    Article-like nodes win over WebPage / WebSite nodes; malformed blocks
    are skipped.
    """
    result: dict = {}

    for script in soup.find_all("script", type="application/ld+json"):
        try:
            raw = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping malformed JSON-LD block")
            continue

        nodes: list = []
        if isinstance(raw, list):
            nodes = raw
        elif isinstance(raw, dict):
            nodes = raw.get("@graph", [raw])

        for node in nodes:
            if not isinstance(node, dict):
                continue
            types = _node_types(node)
            is_article = bool(types & _ARTICLE_TYPES)
            if not is_article and not types & {"webpage", "website"}:
                continue
            if is_article and not _node_types(result) & _ARTICLE_TYPES:
                result = node
            elif not result:
                result = node

    return result


def _author_from_jsonld(node: dict) -> str | None:
    author = node.get("author")
    if isinstance(author, list):
        names = [_author_from_jsonld({"author": a}) for a in author]
        return ", ".join(n for n in names if n) or None
    if isinstance(author, dict):
        return _normalize(safe_str(author.get("name")))
    if isinstance(author, str):
        return _normalize(author)
    return None


def _tags_from_jsonld(node: dict) -> list[str]:
    kw = node.get("keywords", [])
    if isinstance(kw, str):
        return [t.strip() for t in kw.split(",") if t.strip()]
    if isinstance(kw, list):
        return [str(k).strip() for k in kw if k and str(k).strip()]
    return []


def _publisher_from_jsonld(node: dict) -> str | None:
    publisher = node.get("publisher")
    if isinstance(publisher, dict):
        return _normalize(safe_str(publisher.get("name")))
    if isinstance(publisher, str):
        return _normalize(publisher)
    return None


# ---------------------------------------------------------------------------
# Per-field strategies
# ---------------------------------------------------------------------------

def _title_tag(soup: BeautifulSoup) -> str | None:
    scope = soup.head if isinstance(soup.head, Tag) else soup
    title = scope.find("title")
    return _text_of(title) if isinstance(title, Tag) else None


def _first_heading(content_root: Tag | None) -> str | None:
    if content_root is None:
        return None
    heading = content_root.find(["h1", "h2", "h3"])
    return _text_of(heading) if isinstance(heading, Tag) else None


def _byline_author(soup: BeautifulSoup) -> str | None:
    for tag in soup.find_all(True):
        if tag.name in _PAGE_TAGS or not has_token(tag, BYLINE_TOKENS):
            continue
        # "comment-author" and friends name commenters, not the writer
        if has_token(tag, BOILERPLATE_TOKENS) or _in_boilerplate(tag):
            continue
        author = clean_author(_text_of(tag))
        if author:
            return author
    return None


def _microdata_author(soup: BeautifulSoup) -> str | None:
    for tag in soup.find_all(attrs={"itemprop": "author"}):
        name = tag.find(attrs={"itemprop": "name"})
        if isinstance(name, Tag):
            value = safe_str(name.get("content")) or name.get_text(" ")
        else:
            value = safe_str(tag.get("content")) or tag.get_text(" ")
        author = clean_author(value)
        if author:
            return author
    return None


def _structured_author(soup: BeautifulSoup, jsonld: dict) -> str | None:
    return clean_author(_author_from_jsonld(jsonld)) or _microdata_author(soup)


def _meta_date(index: dict[str, list[str]]) -> str | None:
    for key in DATE_META:
        for value in index.get(key, ()):
            date = normalize_date(value)
            if date:
                return date
    return None


def _time_datetime(soup: BeautifulSoup) -> str | None:
    """Normalized datetime attribute of the first <time datetime> element."""
    time_tag = soup.find("time", attrs={"datetime": True})
    if isinstance(time_tag, Tag):
        return normalize_date(safe_str(time_tag.get("datetime")))
    return None


def _is_date_labelled(tag: Tag) -> bool:
    if tag.name in _PAGE_TAGS:
        return False
    return tag.name == "time" or has_token(tag, DATE_LABEL_TOKENS)


def _text_date(soup: BeautifulSoup) -> str | None:
    """First date pattern found in the text of a date-labelled element."""
    body = soup.body if isinstance(soup.body, Tag) else soup
    for tag in body.find_all(_is_date_labelled):
        text = _text_of(tag)
        if not text:
            continue
        match = DATE_PATTERN.search(text)
        if match:
            date = normalize_date(match.group(0))
            if date:
                return date
    return None


def _run_chain(field: str, strategies: list[Strategy]) -> str | None:
    outcome = first_qualifying(strategies, chain=field)
    if outcome.strategy:
        logger.debug("%s from %s: %r", field, outcome.strategy, outcome.value)
    return outcome.value


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def _is_category_container(tag: Tag) -> bool:
    if tag.name in _PAGE_TAGS:
        return False
    words = (safe_str(tag.get("class")) + " " + safe_str(tag.get("id"))).lower().split()
    return any(
        word == token or word.endswith(("-" + token, "_" + token))
        for word in words
        for token in CATEGORY_CONTAINER_TOKENS
    )


def _in_boilerplate(tag: Tag) -> bool:
    return any(
        parent.name not in _PAGE_TAGS and has_token(parent, BOILERPLATE_TOKENS)
        for parent in tag.parents
        if isinstance(parent, Tag)
    )


def _link_categories(soup: BeautifulSoup) -> list[str]:
    found: list[str] = []
    for container in soup.find_all(_is_category_container):
        if _in_boilerplate(container):
            continue
        for link in container.find_all("a"):
            text = _text_of(link)
            if text and len(text) <= MAX_AUTHOR_LENGTH:
                found.append(text)
    return found


def extract_categories(
    soup: BeautifulSoup,
    index: dict[str, list[str]] | None = None,
    jsonld: dict | None = None,
) -> list[str]:
    """Collect sections, tags and keywords; de-duplicated case-insensitively."""
    index = _meta_index(soup) if index is None else index
    jsonld = _extract_jsonld(soup) if jsonld is None else jsonld

    categories: list[str] = []
    categories.extend(index.get("article:section", []))
    categories.extend(index.get("article:tag", []))
    categories.extend(_tags_from_jsonld(jsonld))
    categories.extend(_link_categories(soup))
    return _dedupe(categories)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(
    soup: BeautifulSoup,
    content_root: Tag | None = None,
) -> Metadata:
    """Extract title, author, date, description, sitename and categories.

    Args:
        soup:         Parsed document; only read, never modified.
        content_root: Located content root, used for the heading fallback
                      of the title.
    """
    index = _meta_index(soup)
    jsonld = _extract_jsonld(soup)

    title = _run_chain(
        "title",
        [
            Strategy("title_tag", lambda: _title_tag(soup)),
            Strategy("og:title", lambda: _meta_first(index, "og:title")),
            Strategy("twitter:title", lambda: _meta_first(index, "twitter:title")),
            Strategy("heading", lambda: _first_heading(content_root)),
        ],
    )

    author = _run_chain(
        "author",
        [
            Strategy("meta_author", lambda: clean_author(_meta_first(index, "author"))),
            Strategy("byline", lambda: _byline_author(soup)),
            Strategy("structured", lambda: _structured_author(soup, jsonld)),
        ],
    )

    date = _run_chain(
        "date",
        [
            Strategy("meta_date", lambda: _meta_date(index)),
            Strategy("time_datetime", lambda: _time_datetime(soup)),
            Strategy("date_text", lambda: _text_date(soup)),
        ],
    )

    description = _run_chain(
        "description",
        [
            Strategy("meta_description", lambda: _meta_first(index, "description")),
            Strategy("og:description", lambda: _meta_first(index, "og:description")),
            Strategy(
                "twitter:description",
                lambda: _meta_first(index, "twitter:description"),
            ),
        ],
    )

    sitename = _run_chain(
        "sitename",
        [
            Strategy("og:site_name", lambda: _meta_first(index, "og:site_name")),
            Strategy("application_name", lambda: _meta_first(index, "application-name")),
            Strategy("publisher", lambda: _publisher_from_jsonld(jsonld)),
        ],
    )

    return Metadata(
        title=title,
        author=author,
        date=date,
        description=description,
        sitename=sitename,
        categories=extract_categories(soup, index, jsonld),
    )
