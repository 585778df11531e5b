"""Extraction pipeline: parse → locate → clean → metadata → result.

Basic usage::

    from pagetext import extract, render

    result = extract(html_bytes, url="https://example.com/news/story")
    print(result.title)
    print(result.raw_text)

    # Straight to a serialization
    print(render(html_bytes, config=ExtractionConfig(output_format="json")))

Re-extracting one parsed document::

    from pagetext.core import extract_document
    from pagetext.loader import load_document

    soup = load_document(html_bytes)
    with_links = extract_document(soup)
    without = extract_document(soup, config=ExtractionConfig(include_links=False))
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from pagetext.extractors.cleaner import clean_content, flatten_text, is_wikipedia_page
from pagetext.extractors.main_content import locate_main_content
from pagetext.extractors.metadata import extract_metadata
from pagetext.items import ExtractionResult, Metadata
from pagetext.loader import load_document
from pagetext.serializers import serialize
from pagetext.settings import ExtractionConfig

logger = logging.getLogger(__name__)


def extract_document(
    soup: BeautifulSoup,
    *,
    url: str | None = None,
    config: ExtractionConfig | None = None,
) -> ExtractionResult:
    """Run the extraction pipeline on an already parsed document.

    *soup* is only read: the returned ``content`` is a new tree, so the same
    document can be extracted again with a different configuration.
    Reference sections ("References", "See also", ...) are dropped on
    Wikipedia pages even when the configuration leaves them in.

    Args:
        soup:   Parsed document from :func:`~pagetext.loader.load_document`.
        url:    Source URL; recorded on the result and used to resolve
                relative links and image sources.
        config: Extraction options (defaults to ``ExtractionConfig()``).

    Raises:
        InsufficientContentError: if no locator tier finds enough text.
    """
    cfg = config or ExtractionConfig()
    if not cfg.skip_reference_sections and is_wikipedia_page(soup):
        logger.debug("wikipedia page: dropping reference sections")
        cfg = cfg.model_copy(update={"skip_reference_sections": True})

    candidate = locate_main_content(soup, cfg)
    content = clean_content(candidate.node, cfg, base_url=url)
    raw_text = flatten_text(content)

    if cfg.extract_metadata:
        meta = extract_metadata(soup, candidate.node)
    else:
        meta = Metadata()

    logger.debug(
        "extracted %s: tier=%s score=%.1f chars=%d",
        url or "<document>",
        candidate.tier,
        candidate.score,
        len(raw_text),
    )

    return ExtractionResult(
        content=content,
        raw_text=raw_text,
        title=meta.title,
        author=meta.author,
        date=meta.date,
        description=meta.description,
        url=url,
        sitename=meta.sitename,
        categories=list(meta.categories),
        tier=candidate.tier,
        score=candidate.score,
    )


def extract(
    raw: bytes | str,
    *,
    url: str | None = None,
    config: ExtractionConfig | None = None,
) -> ExtractionResult:
    """Parse *raw* HTML and extract its main content and metadata.

    This function makes no network requests; see :func:`pagetext.fetcher.fetch`
    for the one-call URL variant.

    Raises:
        ParseError:               if the HTML parser aborts.
        InsufficientContentError: if no locator tier finds enough text.
    """
    return extract_document(load_document(raw), url=url, config=config)


def render(
    raw: bytes | str,
    *,
    url: str | None = None,
    config: ExtractionConfig | None = None,
) -> str:
    """Extract *raw* and serialize it in ``config.output_format``."""
    cfg = config or ExtractionConfig()
    return serialize(extract(raw, url=url, config=cfg), cfg.output_format)
