"""Extraction entry points: the Readability driver and extract_article.

:class:`Readability` owns one parsed document and runs the full pipeline
once::

    from readr import Readability, extract_article

    result = Readability(html, url="https://example.com/post").parse()
    if result.ok:
        print(result.article.title)
        print(result.article.content)

    # Same thing, with option overrides and no exception for huge pages
    result = extract_article(html, url="https://example.com/post", char_threshold=250)

Extraction runs up to four passes over the body.  Each pass scores, selects,
gathers and cleans; when the result is shorter than ``char_threshold`` the
body is restored from a snapshot and the next pass runs with one fewer
heuristic enabled.  When every pass falls short, the longest attempt wins.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, NamedTuple

from bs4 import BeautifulSoup, Tag

from readr.errors import DocumentTooLargeError
from readr.extractors.cleaning import clean_page, prep_article
from readr.extractors.dom import get_attr, inner_text, node_ancestors
from readr.extractors.metadata import extract_jsonld, extract_metadata, get_article_title
from readr.extractors.postprocess import postprocess_content
from readr.extractors.preprocess import prep_document, remove_scripts, unwrap_noscript_images
from readr.extractors.scoring import PassState, collect_elements_to_score, score_elements
from readr.extractors.selection import append_siblings, select_top_candidate
from readr.extractors.urlnorm import base_uri
from readr.items import Article, FailureReason
from readr.language import detect_language, document_language
from readr.settings import RELAXATION_ORDER, ReadabilityOptions, Strictness

logger = logging.getLogger(__name__)

_PAGE_ID = "readability-page-1"
_PAGE_CLASS = "page"


class Attempt(NamedTuple):
    """One finished pass: its content container and extracted text length."""

    content: Tag
    text_length: int
    dir: str | None = None


@dataclass
class ExtractionResult:
    """Outcome of :meth:`Readability.parse`.

    Exactly one of ``article`` and ``failure`` is set.  ``attempts`` counts
    the passes that ran.
    """

    article: Article | None = None
    failure: FailureReason | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.article is not None


def _parse_document(document: str | bytes | BeautifulSoup) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document, "lxml")


def _article_direction(top_candidate: Tag, parent: Tag | None) -> str | None:
    chain: list[Tag] = [top_candidate]
    if parent is not None:
        chain = [parent, top_candidate, *node_ancestors(parent)]
    for element in chain:
        direction = get_attr(element, "dir") if isinstance(element, Tag) else None
        if direction:
            return direction
    return None


class Readability:
    """Extract the main article from one HTML document.

    Args:
        document: Raw HTML or an already-parsed ``BeautifulSoup``.  A soup
                  passed in is mutated by :meth:`parse`.
        url:      The document's URL, used to absolutize links.
        options:  A :class:`ReadabilityOptions`; keyword *overrides* are
                  applied on top of it.
    """

    def __init__(
        self,
        document: str | bytes | BeautifulSoup,
        url: str = "",
        options: ReadabilityOptions | None = None,
        **overrides: Any,
    ) -> None:
        if options is None:
            options = ReadabilityOptions(**overrides)
        elif overrides:
            current = {name: getattr(options, name) for name in ReadabilityOptions.model_fields}
            options = ReadabilityOptions.model_validate({**current, **overrides})
        self.options = options
        self.url = url
        self.soup = _parse_document(document)
        self._byline: str | None = None
        self._attempts = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self) -> ExtractionResult:
        """Run the pipeline.  Raises :class:`DocumentTooLargeError`."""
        self._check_size()

        jsonld: dict[str, str] = {}
        if not self.options.disable_json_ld:
            jsonld = extract_jsonld(self.soup, get_article_title(self.soup))

        unwrap_noscript_images(self.soup)
        remove_scripts(self.soup)
        prep_document(self.soup)

        metadata = extract_metadata(self.soup, jsonld)

        if self.soup.body is None:
            logger.debug("Document has no <body>")
            return ExtractionResult(failure=FailureReason.NO_BODY)

        grabbed = self._grab_article(self.soup.body)
        if grabbed is None:
            return ExtractionResult(failure=FailureReason.NO_CONTENT, attempts=self._attempts)
        content, direction = grabbed

        postprocess_content(
            content,
            self.soup,
            base_uri(self.soup, self.url),
            self.url,
            keep_classes=self.options.keep_classes,
            classes_to_preserve=self.options.classes_to_preserve,
        )

        text = content.get_text()
        lang = document_language(self.soup)
        if lang is None and self.options.detect_language:
            lang = detect_language(text)

        article = Article(
            title=metadata.title,
            byline=metadata.byline or self._byline,
            dir=direction,
            lang=lang,
            content=self.options.serializer(content),
            text_content=text,
            excerpt=metadata.excerpt,
            site_name=metadata.site_name,
            published_time=metadata.published_time,
        )
        logger.debug("Extracted %d chars in %d pass(es)", article.length, self._attempts)
        return ExtractionResult(article=article, attempts=self._attempts)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_size(self) -> None:
        limit = self.options.max_elems_to_parse
        if not limit:
            return
        count = len(self.soup.find_all(True))
        if count > limit:
            raise DocumentTooLargeError(count, limit)

    def _run_pass(self, page: Tag, flags: Strictness) -> Attempt:
        state = PassState(self.soup, flags, self.options, byline=self._byline)

        clean_page(page, state)
        elements = collect_elements_to_score(page, state)
        self._byline = state.byline

        candidates = score_elements(elements, state)
        top_candidate, created = select_top_candidate(candidates, page, state)
        parent = top_candidate.parent

        article_content = append_siblings(top_candidate, state)
        prep_article(article_content, state)

        if created:
            top_candidate["id"] = _PAGE_ID
            top_candidate["class"] = [_PAGE_CLASS]
        else:
            wrapper = self.soup.new_tag("div", attrs={"id": _PAGE_ID, "class": [_PAGE_CLASS]})
            while article_content.contents:
                wrapper.append(article_content.contents[0])
            article_content.append(wrapper)

        return Attempt(
            article_content,
            len(inner_text(article_content)),
            _article_direction(top_candidate, parent),
        )

    def _grab_article(self, page: Tag) -> tuple[Tag, str | None] | None:
        snapshot = copy.copy(page)
        flags = Strictness.ALL
        attempts: list[Attempt] = []

        while True:
            self._attempts += 1
            attempt = self._run_pass(page, flags)
            logger.debug(
                "Pass %d (%s) extracted %d chars",
                self._attempts, flags, attempt.text_length,
            )

            if attempt.text_length >= self.options.char_threshold:
                return attempt.content, attempt.dir

            _restore(page, snapshot)
            attempts.append(attempt)

            remaining = [flag for flag in RELAXATION_ORDER if flag in flags]
            if remaining:
                flags &= ~remaining[0]
                continue

            best = max(attempts, key=lambda a: a.text_length)
            if not best.text_length:
                logger.info("No content found after %d passes", self._attempts)
                return None
            logger.info(
                "No pass reached %d chars; using the longest attempt (%d chars)",
                self.options.char_threshold, best.text_length,
            )
            return best.content, best.dir


def _restore(page: Tag, snapshot: Tag) -> None:
    """Replace the children of *page* with a fresh copy of *snapshot*'s."""
    page.clear()
    for child in list(copy.copy(snapshot).contents):
        page.append(child)


def extract_article(
    document: str | bytes | BeautifulSoup,
    url: str = "",
    **overrides: Any,
) -> ExtractionResult:
    """One-shot extraction; an oversized document becomes a failed result."""
    try:
        return Readability(document, url=url, **overrides).parse()
    except DocumentTooLargeError as exc:
        logger.debug("Skipping extraction: %s", exc)
        return ExtractionResult(failure=FailureReason.TOO_LARGE)
