"""Static keyword tables shared by the locator, cleaner and metadata chains.

Everything here is built once at import time from tuples and frozensets and
is never mutated afterwards, so concurrent extractions share it freely.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from bs4 import Tag


def safe_str(val: object, default: str = "") -> str:
    """Convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


# Class words naming a post's terms rather than the element's role
# (WordPress puts category-social-media, tag-comments on <article>)
TAXONOMY_CLASS_PREFIXES: tuple[str, ...] = ("category-", "tag-")


def class_id_string(tag: Tag) -> str:
    """Return the lower-cased class and id of *tag* joined by a space.

    Taxonomy class words are left out.
    """
    words = [
        w for w in safe_str(tag.get("class")).lower().split()
        if not w.startswith(TAXONOMY_CLASS_PREFIXES)
    ]
    return " ".join(words) + " " + safe_str(tag.get("id")).lower()


def has_token(tag: Tag, tokens: tuple[str, ...]) -> bool:
    """True if any token is a substring of *tag*'s class or id."""
    combined = class_id_string(tag)
    if not combined.strip():
        return False
    return any(token in combined for token in tokens)


# ---------------------------------------------------------------------------
# Rules: (tag-set, predicate) pairs
# ---------------------------------------------------------------------------

class Rule(NamedTuple):
    tags: frozenset[str]
    predicate: Callable[[Tag], bool]

    def matches(self, tag: Tag) -> bool:
        return tag.name in self.tags and self.predicate(tag)


def _any_tag(tag: Tag) -> bool:
    return True


def _tokens(*tokens: str) -> Callable[[Tag], bool]:
    frozen = tuple(t.lower() for t in tokens)

    def predicate(tag: Tag) -> bool:
        return has_token(tag, frozen)

    return predicate


def _attr_equals(name: str, *values: str) -> Callable[[Tag], bool]:
    wanted = frozenset(v.lower() for v in values)

    def predicate(tag: Tag) -> bool:
        return safe_str(tag.get(name)).strip().lower() in wanted

    return predicate


_CONTAINERS: frozenset[str] = frozenset({"div", "section"})
_ANY_BLOCK: frozenset[str] = frozenset({"div", "section", "article", "main"})

# Tier 1: semantic containers and common publishing-platform body classes
SEMANTIC_RULES: tuple[Rule, ...] = (
    Rule(frozenset({"article", "main"}), _any_tag),
    Rule(_ANY_BLOCK, _attr_equals("role", "main", "article")),
    Rule(_ANY_BLOCK, _attr_equals("itemprop", "articlebody")),
    Rule(
        _CONTAINERS,
        _tokens(
            "post",
            "entry-content",
            "entry",
            "article-body",
            "article__body",
            "articlebody",
            "article-content",
            "article__content",
            "article-text",
            "articletext",
        ),
    ),
)

# Tier 2: story / theme / section-content conventions
CLASS_HINT_RULES: tuple[Rule, ...] = (
    Rule(
        _CONTAINERS,
        _tokens(
            "story-body",
            "story-content",
            "storycontent",
            "story",
            "theme-content",
            "blog-content",
            "section-content",
            "single-content",
            "single-post",
            "field-body",
            "body-text",
            "text-content",
            "page-content",
            "fulltext",
            "main-column",
            "art-content",
        ),
    ),
)

# Tier 3: generic "content" / "main-content" naming
GENERIC_HINT_RULES: tuple[Rule, ...] = (
    Rule(
        _CONTAINERS,
        _tokens(
            "main-content",
            "maincontent",
            "content-main",
            "content_main",
            "content-body",
            "content__body",
            "contentbody",
            "content",
        ),
    ),
    Rule(_CONTAINERS, _tokens("main", "primary")),
)

# ---------------------------------------------------------------------------
# Boilerplate
# ---------------------------------------------------------------------------

# Tags whose whole subtree is dropped by the cleaner
REMOVAL_TAGS: frozenset[str] = frozenset(
    {
        "script",
        "style",
        "noscript",
        "template",
        "nav",
        "header",
        "footer",
        "aside",
        "form",
        "iframe",
        "button",
        "input",
        "select",
        "textarea",
        "svg",
    },
)

# Class/id substrings that mark non-content subtrees
BOILERPLATE_TOKENS: tuple[str, ...] = (
    "comment",
    "share",
    "related",
    "sidebar",
    "advertisement",
    "promo",
    "widget",
    "social",
    "newsletter",
    "breadcrumb",
    "navigation",
    "navbar",
    "menu",
    "cookie",
    "popup",
    "subscribe",
    "consent",
    "gdpr",
    "onetrust",
    "cookiebot",
)

# Tags never considered by density scoring or measured as visible text
INVISIBLE_TAGS: frozenset[str] = frozenset(
    {"script", "style", "noscript", "template", "head", "title", "meta", "link"},
)

# Tags that carry no prose; each one lowers the density score
NON_TEXT_TAGS: frozenset[str] = frozenset(
    {
        "script",
        "style",
        "noscript",
        "iframe",
        "form",
        "input",
        "button",
        "select",
        "textarea",
        "svg",
        "canvas",
        "object",
        "embed",
        "img",
        "video",
        "audio",
        "nav",
        "header",
        "footer",
        "aside",
        "menu",
    },
)

# Block-level containers scored by the density tier
DENSITY_BLOCK_TAGS: frozenset[str] = frozenset(
    {"div", "section", "article", "main", "td", "blockquote"},
)

# Elements that start a new paragraph in flattened text
TEXT_BLOCK_TAGS: frozenset[str] = frozenset(
    {
        "address", "article", "blockquote", "body", "dd", "div", "dl", "dt",
        "figcaption", "figure", "h1", "h2", "h3", "h4", "h5", "h6", "hr",
        "li", "main", "ol", "p", "pre", "section", "table", "td", "th",
        "tr", "ul",
    },
)

# Elements kept by the cleaner even when they have no text
VOID_TAGS: frozenset[str] = frozenset({"img", "br", "hr"})

HEADING_TAGS: frozenset[str] = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

# Headings (lower-cased prefixes) of trailing reference sections, dropped
# with everything up to the next heading of the same or a higher level
REFERENCE_SECTION_TITLES: tuple[str, ...] = (
    "references",
    "external links",
    "see also",
    "further reading",
    "notes",
    "bibliography",
    "sources",
    "citations",
    "footnotes",
    "literature",
    "literatur",
    "weblinks",
    "enlaces externos",
)

# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

BYLINE_TOKENS: tuple[str, ...] = ("byline", "author", "dc-creator", "writer")

DATE_LABEL_TOKENS: tuple[str, ...] = (
    "date",
    "published",
    "timestamp",
    "pubdate",
    "posted-on",
)

# <meta> keys (property, name or itemprop, lower-cased) carrying the
# publication date, most specific first
DATE_META: tuple[str, ...] = (
    "article:published_time",
    "og:published_time",
    "datepublished",
    "pubdate",
    "publishdate",
    "publish-date",
    "publish_date",
    "dc.date.issued",
    "dcterms.created",
    "dc.date",
    "sailthru.date",
    "parsely-pub-date",
    "date",
)

# Class/id words of containers whose links are article tags or categories.
# A word matches when it equals a token or ends with "-token" / "_token".
CATEGORY_CONTAINER_TOKENS: tuple[str, ...] = (
    "tags",
    "categories",
    "topics",
    "tag-list",
    "tags-links",
    "cat-links",
)
