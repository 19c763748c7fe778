"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from readr.extractors.scoring import PassState
from readr.settings import ReadabilityOptions, Strictness

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def sparse_html() -> str:
    return _read_fixture("sparse.html")


@pytest.fixture
def minimal_article_html() -> str:
    return _read_fixture("minimal_article.html")


@pytest.fixture
def make_soup():
    def _make(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")

    return _make


@pytest.fixture
def make_state():
    """Build a PassState for a soup; all heuristics on unless told otherwise."""

    def _make(
        soup: BeautifulSoup,
        flags: Strictness = Strictness.ALL,
        **options,
    ) -> PassState:
        return PassState(soup, flags, ReadabilityOptions(**options))

    return _make
