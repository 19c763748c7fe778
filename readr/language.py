"""Language detection helpers."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag
from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException

logger = logging.getLogger(__name__)

# Deterministic results across runs
DetectorFactory.seed = 0

MIN_DETECTABLE_LENGTH = 40


def detect_language(text: str, *, sample_size: int = 4000) -> str | None:
    """Guess the ISO 639-1 code of *text*, or ``None`` when it is too short.

    Only the first *sample_size* characters are examined.
    """
    sample = " ".join((text or "").split())[:sample_size]
    if len(sample) < MIN_DETECTABLE_LENGTH:
        return None
    try:
        return detect(sample) or None
    except LangDetectException as exc:
        logger.debug("langdetect gave up on %d chars: %s", len(sample), exc)
        return None


def document_language(soup: BeautifulSoup) -> str | None:
    """Return the ``lang`` attribute of the root ``<html>`` element."""
    html = soup.find("html")
    if not isinstance(html, Tag):
        return None
    lang = html.get("lang")
    if isinstance(lang, list):
        lang = " ".join(lang)
    if not lang:
        return None
    return lang.strip() or None
