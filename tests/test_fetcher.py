"""Tests for pagetext.fetcher - HTTP fetch and batch extraction (mocked network)."""

from __future__ import annotations

import gzip
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from pagetext.errors import FetchError, InsufficientContentError
from pagetext.fetcher import FetchResponse, fetch, fetch_batch, fetch_html
from pagetext.items import ExtractionResult
from pagetext.settings import ExtractionConfig


def _make_mock_response(
    body: bytes,
    *,
    charset: str | None = "utf-8",
    final_url: str = "https://example.com/blog/post",
    content_encoding: str = "",
) -> MagicMock:
    resp = MagicMock()
    resp.status = 200
    resp.read.return_value = body
    resp.geturl.return_value = final_url
    resp.headers.get.side_effect = (
        lambda key, default="": content_encoding if key == "Content-Encoding" else default
    )
    resp.headers.get_content_charset.return_value = charset
    resp.__enter__ = lambda s: s
    resp.__exit__ = MagicMock(return_value=False)
    return resp


# ---------------------------------------------------------------------------
# fetch_html()
# ---------------------------------------------------------------------------

class TestFetchHtml:
    def test_returns_fetch_response(self):
        mock_resp = _make_mock_response(b"<html><body><p>Hello world</p></body></html>")
        with patch("urllib.request.urlopen", return_value=mock_resp):
            response = fetch_html("https://example.com/blog/post")
        assert isinstance(response, FetchResponse)
        assert response.status == 200
        assert b"Hello world" in response.body
        assert response.encoding == "utf-8"

    def test_final_url_after_redirect(self):
        mock_resp = _make_mock_response(b"<p>x</p>", final_url="https://example.com/moved")
        with patch("urllib.request.urlopen", return_value=mock_resp):
            response = fetch_html("https://example.com/old")
        assert response.final_url == "https://example.com/moved"

    def test_gzip_body_decompressed(self):
        mock_resp = _make_mock_response(gzip.compress(b"<p>zipped</p>"), content_encoding="gzip")
        with patch("urllib.request.urlopen", return_value=mock_resp):
            response = fetch_html("https://example.com/blog/post")
        assert response.body == b"<p>zipped</p>"

    def test_http_error_raises_fetch_error(self):
        with patch(
            "urllib.request.urlopen",
            side_effect=urllib.error.HTTPError(
                "https://example.com", 404, "Not Found", {}, None,
            ),
        ), pytest.raises(FetchError) as exc_info:
            fetch_html("https://example.com/blog/missing")
        assert exc_info.value.status == 404
        assert exc_info.value.exit_code == 3

    def test_transient_status_retried(self):
        mock_resp = _make_mock_response(b"<p>ok</p>")
        side_effect = [
            urllib.error.HTTPError("https://example.com", 503, "Unavailable", {}, None),
            mock_resp,
        ]
        with patch("urllib.request.urlopen", side_effect=side_effect) as urlopen, \
                patch("pagetext.fetcher.time.sleep") as sleep:
            response = fetch_html("https://example.com/blog/post", max_retries=2)
        assert response.body == b"<p>ok</p>"
        assert urlopen.call_count == 2
        sleep.assert_called_once()

    def test_retries_exhausted(self):
        err = urllib.error.HTTPError("https://example.com", 429, "Too Many", {}, None)
        with patch("urllib.request.urlopen", side_effect=[err, err]), \
                patch("pagetext.fetcher.time.sleep"), \
                pytest.raises(FetchError) as exc_info:
            fetch_html("https://example.com/blog/post", max_retries=1)
        assert exc_info.value.status == 429

    def test_url_error_raises_fetch_error(self):
        with patch(
            "urllib.request.urlopen",
            side_effect=urllib.error.URLError("Connection refused"),
        ), pytest.raises(FetchError):
            fetch_html("https://example.com/blog/post", max_retries=0)

    def test_invalid_scheme_raises_fetch_error(self):
        with pytest.raises(FetchError) as exc_info:
            fetch_html("ftp://example.com/file.txt")
        assert "scheme" in str(exc_info.value).lower()

    def test_fetch_error_carries_url(self):
        url = "https://example.com/blog/post"
        with patch(
            "urllib.request.urlopen",
            side_effect=urllib.error.HTTPError(url, 403, "Forbidden", {}, None),
        ), pytest.raises(FetchError) as exc_info:
            fetch_html(url)
        assert exc_info.value.url == url


# ---------------------------------------------------------------------------
# fetch() - combined fetch + extract
# ---------------------------------------------------------------------------

class TestFetch:
    def _patch_fetch_html(self, html: str, final_url: str = "https://example.com/final"):
        return patch(
            "pagetext.fetcher.fetch_html",
            return_value=FetchResponse(200, html.encode("utf-8"), final_url, "utf-8"),
        )

    def test_returns_result(self, article_html):
        with self._patch_fetch_html(article_html):
            result = fetch("https://example.com/start")
        assert isinstance(result, ExtractionResult)
        assert result.title == "How Rivers Shape Cities"

    def test_final_url_recorded_and_used_for_links(self, article_html):
        with self._patch_fetch_html(article_html, "https://news.example.org/a/b"):
            result = fetch("https://example.com/start")
        assert result.url == "https://news.example.org/a/b"
        assert result.content.find("a")["href"] == "https://news.example.org/notes/sources"

    def test_config_passed_to_fetch_html(self, article_html):
        cfg = ExtractionConfig(timeout=5, max_retries=0, user_agent="test-agent")
        with self._patch_fetch_html(article_html) as mocked:
            fetch("https://example.com/start", cfg)
        mocked.assert_called_once_with(
            "https://example.com/start", timeout=5, user_agent="test-agent", max_retries=0,
        )

    def test_short_page_raises(self):
        with self._patch_fetch_html("<html><body><p>tiny</p></body></html>"), \
                pytest.raises(InsufficientContentError):
            fetch("https://example.com/start")


# ---------------------------------------------------------------------------
# fetch_batch()
# ---------------------------------------------------------------------------

class TestFetchBatch:
    URLS = ["https://example.com/1", "https://example.com/2", "https://example.com/3"]

    def _fake_fetch(self, url, config=None):
        if url.endswith("/2"):
            raise FetchError("boom", url=url, status=500)
        result = MagicMock(spec=ExtractionResult)
        result.url = url
        return result

    def test_preserves_order_and_skips_failures(self):
        with patch("pagetext.fetcher.fetch", side_effect=self._fake_fetch):
            results = fetch_batch(self.URLS, max_workers=3)
        assert [r.url for r in results] == ["https://example.com/1", "https://example.com/3"]

    def test_include_keeps_slots(self):
        with patch("pagetext.fetcher.fetch", side_effect=self._fake_fetch):
            results = fetch_batch(self.URLS, on_error="include")
        assert len(results) == 3
        assert results[1] is None
        assert results[2].url == "https://example.com/3"

    def test_raise_propagates(self):
        with patch("pagetext.fetcher.fetch", side_effect=self._fake_fetch), \
                pytest.raises(FetchError):
            fetch_batch(self.URLS, on_error="raise")

    def test_invalid_on_error(self):
        with pytest.raises(ValueError):
            fetch_batch(self.URLS, on_error="ignore")
