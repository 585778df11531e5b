"""pagetext.fetcher - HTTP fetch collaborator and one-call URL extraction.

Uses only the stdlib (``urllib``) for HTTP.  The extraction core never
touches the network; this module fetches bytes and hands them to
:func:`pagetext.core.extract_document`.

Basic usage::

    from pagetext.fetcher import fetch

    result = fetch("https://example.com/blog/some-post")
    print(result.title)
    print(result.raw_text)

Low-level access::

    from pagetext.fetcher import fetch_html
    from pagetext import extract

    response = fetch_html("https://example.com/blog/post")
    result = extract(response.body, url=response.final_url)
"""

from __future__ import annotations

import gzip
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import NamedTuple
from urllib.parse import urlparse

from pagetext.core import extract_document
from pagetext.errors import FetchError
from pagetext.items import ExtractionResult
from pagetext.loader import load_document
from pagetext.settings import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
    ExtractionConfig,
)

logger = logging.getLogger(__name__)


class FetchResponse(NamedTuple):
    """A successful HTTP response.

    ``body`` is the raw (decompressed) payload; ``encoding`` is the charset
    from ``Content-Type`` when the server sent one.
    """

    status: int
    body: bytes
    final_url: str
    encoding: str | None = None


def _decompress(raw: bytes, headers: object | None, url: str) -> bytes:
    encoding = ""
    if headers is not None:
        encoding = str(headers.get("Content-Encoding", "")).lower().strip()

    try:
        if encoding == "gzip":
            return gzip.decompress(raw)
        if encoding in ("deflate", "zlib"):
            return zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"{encoding} decompression failed for {url}: {exc}", url=url) from exc
    if encoding == "br":
        raise FetchError(f"Brotli-encoded response from {url} is not supported", url=url)
    return raw


def _charset(headers: object | None) -> str | None:
    if headers is None:
        return None
    getter = getattr(headers, "get_content_charset", None)
    return getter() if getter else None


def _retry_after(exc: urllib.error.HTTPError) -> int:
    header = exc.headers.get("Retry-After", "") if exc.headers else ""
    return int(header) if header and header.strip().isdigit() else 0


def _backoff(attempt: int, floor: int = 0) -> float:
    return max(floor, 2 ** attempt) + random.uniform(0, 1)


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def fetch_html(
    url: str,
    *,
    timeout: int = DEFAULT_TIMEOUT,
    user_agent: str | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> FetchResponse:
    """Fetch *url* and return the response body with its final URL.

    Redirects are followed.  Retries up to *max_retries* times with jittered
    exponential backoff on transient errors (429, 500, 502, 503, 504 and
    network-level failures), honouring ``Retry-After``.

    Raises:
        FetchError: On HTTP errors, connection failures, or invalid URLs.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
        },
    )

    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                body = _decompress(resp.read(), resp.headers, url)
                return FetchResponse(
                    status=resp.status,
                    body=body,
                    final_url=resp.geturl() or url,
                    encoding=_charset(resp.headers),
                )

        except urllib.error.HTTPError as exc:
            if exc.code in _RETRY_CODES and attempt < max_retries:
                retry_after = _retry_after(exc)
                delay = _backoff(attempt, retry_after)
                logger.debug(
                    "HTTP %d for %s, retrying in %.1fs (attempt %d/%d)%s",
                    exc.code, url, delay, attempt + 1, max_retries,
                    f" [Retry-After={retry_after}s]" if retry_after else "",
                )
                time.sleep(delay)
                continue
            body_text = ""
            try:
                body_text = exc.read().decode("utf-8", errors="replace")
            except OSError:
                body_text = ""
            raise FetchError(
                f"HTTP {exc.code} fetching {url}: {exc.reason}",
                url=url,
                status=exc.code,
                body=body_text,
            ) from exc

        except urllib.error.URLError as exc:
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.debug(
                    "URL error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc.reason,
                )
                time.sleep(delay)
                continue
            raise FetchError(f"URL error fetching {url}: {exc.reason}", url=url) from exc

        except OSError as exc:
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.debug(
                    "Network error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc,
                )
                time.sleep(delay)
                continue
            raise FetchError(f"Network error fetching {url}: {exc}", url=url) from exc

    # range() always ends on a raise or return above
    raise FetchError(f"Failed to fetch {url}", url=url)


# ---------------------------------------------------------------------------
# Fetch + extract
# ---------------------------------------------------------------------------

def fetch(url: str, config: ExtractionConfig | None = None) -> ExtractionResult:
    """Fetch *url* and run the extraction pipeline on the response.

    Relative links resolve against the final URL after redirects, which is
    also recorded as ``result.url``.

    Raises:
        FetchError:               if the URL cannot be fetched.
        ParseError:               if the body cannot be parsed.
        InsufficientContentError: if no content root is found.
    """
    cfg = config or ExtractionConfig()
    logger.info("fetch: %s", url)
    response = fetch_html(
        url,
        timeout=cfg.timeout,
        user_agent=cfg.user_agent,
        max_retries=cfg.max_retries,
    )
    soup = load_document(response.body, encoding=response.encoding)
    return extract_document(soup, url=response.final_url, config=cfg)


def fetch_batch(
    urls: list[str],
    *,
    config: ExtractionConfig | None = None,
    max_workers: int = 8,
    on_error: str = "skip",
) -> list[ExtractionResult | None]:
    """Fetch and extract multiple URLs concurrently.

    Each worker parses its own document, so no tree is shared between
    threads.  Results are returned in the same order as *urls* regardless
    of which requests finish first.

    Args:
        urls:        Fully-qualified HTTP/HTTPS URLs.
        config:      Extraction options shared by every URL.
        max_workers: Maximum number of concurrent fetch threads (default 8).
        on_error:    How to handle individual URL failures:
                     ``"skip"`` (default) - omit failed URLs from results;
                     ``"raise"`` - re-raise the first exception;
                     ``"include"`` - include ``None`` for failures.

    Raises:
        PagetextError: Only when ``on_error="raise"`` and any URL fails.
        ValueError:    For unknown *on_error* values.
    """
    if on_error not in ("skip", "raise", "include"):
        raise ValueError(f"on_error must be 'skip', 'raise', or 'include'; got {on_error!r}")

    results: list[ExtractionResult | None] = [None] * len(urls)

    def _fetch_one(idx: int, url: str) -> tuple[int, ExtractionResult | None]:
        try:
            return idx, fetch(url, config)
        except Exception as exc:
            if on_error == "raise":
                raise
            logger.warning("fetch_batch: failed to extract %s: %s", url, exc)
            return idx, None

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_fetch_one, i, url) for i, url in enumerate(urls)]
        for future in as_completed(futures):
            idx, result = future.result()
            results[idx] = result

    if on_error == "include":
        return results
    return [r for r in results if r is not None]
