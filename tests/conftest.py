"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def news_html() -> str:
    return _read_fixture("news.html")


@pytest.fixture
def article_soup(article_html) -> BeautifulSoup:
    return BeautifulSoup(article_html, "lxml")


@pytest.fixture
def news_soup(news_html) -> BeautifulSoup:
    return BeautifulSoup(news_html, "lxml")


@pytest.fixture
def prose():
    """Return a factory producing *n* words of plain English prose."""
    sentence = "The quick brown fox jumps over the lazy dog near the quiet river bank."

    def make(n: int) -> str:
        words = sentence.split()
        return " ".join(words[i % len(words)] for i in range(n))

    return make
