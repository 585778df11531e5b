"""Main content location with a four-tier cascade.

Tier 1: semantic     (article / main / role / well-known body classes)
Tier 2: class_hints  (story / theme / section-content conventions)
Tier 3: generic_hints (generic "content" / "main-content" naming)
Tier 4: density      (text length minus link and tag penalties, plus paragraphs;
                      <body> counts only the prose outside its blocks)

Tiers 1-3 each propose the first matching node in document order.  A tier
only wins if its candidate still has ``min_extracted_size`` characters of
text after cleaning; otherwise the next tier runs.
"""

from __future__ import annotations

import logging
from typing import Iterator

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PreformattedString

from pagetext.errors import InsufficientContentError
from pagetext.extractors.cleaner import cleaned_text_length, flatten_text, is_boilerplate
from pagetext.extractors.hints import (
    CLASS_HINT_RULES,
    DENSITY_BLOCK_TAGS,
    GENERIC_HINT_RULES,
    NON_TEXT_TAGS,
    SEMANTIC_RULES,
    Rule,
)
from pagetext.extractors.strategies import Strategy, first_qualifying
from pagetext.items import Candidate
from pagetext.settings import ExtractionConfig

logger = logging.getLogger(__name__)

TIER_SEMANTIC = "semantic"
TIER_CLASS_HINTS = "class_hints"
TIER_GENERIC_HINTS = "generic_hints"
TIER_DENSITY = "density"

# Ordered (name, rules) pairs for the selector tiers
_RULE_TIERS: tuple[tuple[str, tuple[Rule, ...]], ...] = (
    (TIER_SEMANTIC, SEMANTIC_RULES),
    (TIER_CLASS_HINTS, CLASS_HINT_RULES),
    (TIER_GENERIC_HINTS, GENERIC_HINT_RULES),
)

TIERS: tuple[str, ...] = (*(name for name, _ in _RULE_TIERS), TIER_DENSITY)

# Density score weights
LINK_PENALTY = 2.0
TAG_PENALTY = 10.0
PARAGRAPH_BONUS = 25.0


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def iter_content_nodes(root: Tag, config: ExtractionConfig) -> Iterator[Tag]:
    """Yield elements under *root* in pre-order, skipping boilerplate subtrees.

    Iterative so that deeply nested markup cannot exhaust the stack.
    """
    stack: list[Tag] = [c for c in reversed(list(root.children)) if isinstance(c, Tag)]
    while stack:
        node = stack.pop()
        if node.name == "head" or is_boilerplate(node, config):
            continue
        yield node
        stack.extend(c for c in reversed(list(node.children)) if isinstance(c, Tag))


def find_first(root: Tag, rules: tuple[Rule, ...], config: ExtractionConfig) -> Tag | None:
    """Return the first node in document order matched by any of *rules*."""
    for node in iter_content_nodes(root, config):
        if any(rule.matches(node) for rule in rules):
            return node
    return None


# ---------------------------------------------------------------------------
# Density scoring
# ---------------------------------------------------------------------------

def _score(text_length: int, link_length: int, non_text: int, paragraphs: int) -> float:
    return (
        text_length
        - link_length * LINK_PENALTY
        - non_text * TAG_PENALTY
        + paragraphs * PARAGRAPH_BONUS
    )


def _tally(el: Tag) -> tuple[int, int, int]:
    """(link text, non-text tags, paragraphs) for *el* itself."""
    name = el.name
    if name == "a":
        return len(flatten_text(el)), 0, 0
    if name == "p":
        return 0, 0, 1
    if name in NON_TEXT_TAGS:
        return 0, 1, 0
    return 0, 0, 0


def density_score(node: Tag) -> float:
    """Score *node* by how much it looks like an article body.

    ``visible_text - link_text * LINK_PENALTY - non_text_tags * TAG_PENALTY
    + paragraphs * PARAGRAPH_BONUS``
    """
    link_length = non_text = paragraphs = 0
    for el in node.find_all(True):
        links, tags, paras = _tally(el)
        link_length += links
        non_text += tags
        paragraphs += paras
    return _score(len(flatten_text(node)), link_length, non_text, paragraphs)


def loose_density_score(node: Tag, config: ExtractionConfig) -> float:
    """Score only what *node* holds outside its block containers.

    Used for ``<body>``, whose prose often sits directly in it next to a few
    small wrapper blocks.  Boilerplate children are left out.
    """
    text_length = link_length = non_text = paragraphs = 0
    for child in node.children:
        if isinstance(child, Tag):
            if child.name in DENSITY_BLOCK_TAGS or is_boilerplate(child, config):
                continue
            text_length += len(flatten_text(child))
            for el in (child, *child.find_all(True)):
                links, tags, paras = _tally(el)
                link_length += links
                non_text += tags
                paragraphs += paras
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            text_length += len(" ".join(child.split()))
    return _score(text_length, link_length, non_text, paragraphs)


def best_by_density(root: Tag, config: ExtractionConfig) -> Candidate | None:
    """Return the highest-scoring block element or ``<body>``; earliest wins ties.

    ``<body>`` is scored with :func:`loose_density_score`, so it wins only
    when the prose outside its blocks outweighs the best block.
    """
    best: Candidate | None = None
    for node in iter_content_nodes(root, config):
        if node.name == "body":
            score = loose_density_score(node, config)
        elif node.name in DENSITY_BLOCK_TAGS:
            score = density_score(node)
        else:
            continue
        if best is None or score > best.score:
            best = Candidate(node, score, TIER_DENSITY)
    return best


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _rule_tier(root: Tag, tier: str, rules: tuple[Rule, ...], config: ExtractionConfig):
    def run() -> Candidate | None:
        node = find_first(root, rules, config)
        if node is None:
            return None
        return Candidate(node, density_score(node), tier)

    return run


def locate_main_content(
    soup: BeautifulSoup | Tag,
    config: ExtractionConfig | None = None,
) -> Candidate:
    """Pick the content root of *soup*.

    Runs the tiers in priority order and returns the first candidate whose
    cleaned text is at least ``config.min_extracted_size`` characters long,
    with ``text_length`` set to that measurement.  *soup* is not modified.

    Raises:
        InsufficientContentError: if no tier yields a qualifying candidate.
    """
    cfg = config or ExtractionConfig()
    measured: dict[str, int] = {}

    def qualifies(candidate: Candidate) -> bool:
        length = cleaned_text_length(candidate.node, cfg)
        measured[candidate.tier] = length
        logger.debug(
            "tier %s proposed <%s class=%r id=%r>: %d chars (min %d)",
            candidate.tier,
            candidate.node.name,
            candidate.node.get("class"),
            candidate.node.get("id"),
            length,
            cfg.min_extracted_size,
        )
        return length >= cfg.min_extracted_size

    strategies = [
        Strategy(name, _rule_tier(soup, name, rules, cfg)) for name, rules in _RULE_TIERS
    ]
    strategies.append(Strategy(TIER_DENSITY, lambda: best_by_density(soup, cfg)))

    outcome = first_qualifying(strategies, qualifies, chain="locator")
    if outcome.value is None:
        attempts = [(a.name, measured.get(a.name)) for a in outcome.attempts]
        raise InsufficientContentError(cfg.min_extracted_size, attempts)

    candidate: Candidate = outcome.value
    return candidate._replace(text_length=measured[candidate.tier])
