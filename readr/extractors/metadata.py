"""Deterministic metadata extraction from HTML.

Priority chain (highest → lowest):
    JSON-LD → Dublin Core → Open Graph → Weibo → plain <meta name> → Twitter Card
    → <title> / <h1> heuristics
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import dateparser
from bs4 import BeautifulSoup, Tag

from readr.items import ArticleMetadata

from .dom import get_attr, inner_text, text_content

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_ISO_CLEANUP_RE = re.compile(r"\s+")
_NORMALIZE_RE = re.compile(r"\s{2,}")
_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")
_TOKENIZE_RE = re.compile(r"\W+")


def _parse_date(raw: str | None) -> str | None:
    """Parse a date string to ISO 8601.

    Returns None on failure or when the year falls outside 1990-2099
    (catches epoch defaults like 1970-01-01 and far-future typos).
    """
    if not raw:
        return None
    raw = _ISO_CLEANUP_RE.sub(" ", raw.strip())
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
        if parsed:
            if not (1990 <= parsed.year <= 2099):
                return None
            return parsed.isoformat()
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
    return None


def _first(*values: Any) -> Any:
    """Return the first non-empty, non-None value."""
    for v in values:
        if v:
            return v
    return None


def _word_count(text: str) -> int:
    # Whitespace split that counts empty edges, so "" is one word
    return len(re.split(r"\s+", text))


def _text_similarity(text_a: str, text_b: str) -> float:
    """Share of *text_b*'s tokens (by length) that also appear in *text_a*."""
    tokens_a = [t for t in _TOKENIZE_RE.split(text_a.lower()) if t]
    tokens_b = [t for t in _TOKENIZE_RE.split(text_b.lower()) if t]
    if not tokens_a or not tokens_b:
        return 0.0
    unique_b = [t for t in tokens_b if t not in tokens_a]
    distance_b = len(" ".join(unique_b)) / len(" ".join(tokens_b))
    return 1 - distance_b


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

_ARTICLE_TYPES_RE = re.compile(
    r"^(Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|"
    r"AskPublicNewsArticle|BackgroundNewsArticle|OpinionNewsArticle|"
    r"ReportageNewsArticle|ReviewNewsArticle|Report|SatiricalArticle|"
    r"ScholarlyArticle|MedicalScholarlyArticle|SocialMediaPosting|BlogPosting|"
    r"LiveBlogPosting|DiscussionForumPosting|TechArticle|APIReference)$",
)
_SCHEMA_CONTEXT_RE = re.compile(r"^https?://schema\.org/?$")


def _is_article_node(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    dtype = node.get("@type")
    if isinstance(dtype, list):
        return any(isinstance(t, str) and _ARTICLE_TYPES_RE.match(t) for t in dtype)
    return isinstance(dtype, str) and bool(_ARTICLE_TYPES_RE.match(dtype))


def _find_article_node(raw: Any) -> dict | None:
    if isinstance(raw, list):
        return next((node for node in raw if _is_article_node(node)), None)
    if not isinstance(raw, dict):
        return None

    context = raw.get("@context")
    if isinstance(context, dict):
        context = context.get("@vocab")
    if not isinstance(context, str) or not _SCHEMA_CONTEXT_RE.match(context):
        return None

    if "@type" not in raw and isinstance(raw.get("@graph"), list):
        return next((node for node in raw["@graph"] if _is_article_node(node)), None)
    return raw if _is_article_node(raw) else None


def _author_from_jsonld(node: dict) -> str | None:
    author = node.get("author")
    if isinstance(author, dict):
        name = author.get("name")
        return name.strip() if isinstance(name, str) else None
    if isinstance(author, list):
        names = [
            a["name"].strip()
            for a in author
            if isinstance(a, dict) and isinstance(a.get("name"), str)
        ]
        return ", ".join(names) or None
    if isinstance(author, str):
        return author.strip()
    return None


def extract_jsonld(soup: BeautifulSoup, document_title: str = "") -> dict[str, str]:
    """Pull article metadata out of the first schema.org article node.

    Must run before scripts are stripped from the document.
    """
    result: dict[str, str] = {}

    for script in soup.find_all("script", type="application/ld+json"):
        if result:
            break
        content = _CDATA_RE.sub("", script.string or "")
        try:
            raw = json.loads(content)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.debug("Skipping invalid JSON-LD block: %s", exc)
            continue

        node = _find_article_node(raw)
        if node is None:
            continue

        name = node.get("name") if isinstance(node.get("name"), str) else None
        headline = node.get("headline") if isinstance(node.get("headline"), str) else None
        if name and headline and name != headline:
            # Both present and different: take whichever resembles the page title.
            name_matches = _text_similarity(name, document_title) > 0.75
            headline_matches = _text_similarity(headline, document_title) > 0.75
            result["title"] = headline if headline_matches and not name_matches else name
        elif name or headline:
            result["title"] = (name or headline or "").strip()

        byline = _author_from_jsonld(node)
        if byline:
            result["byline"] = byline

        description = node.get("description")
        if isinstance(description, str):
            result["excerpt"] = description.strip()

        publisher = node.get("publisher")
        if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
            result["site_name"] = publisher["name"].strip()

        published = node.get("datePublished")
        if isinstance(published, str):
            result["published_time"] = published.strip()

    return result


# ---------------------------------------------------------------------------
# <meta> tags
# ---------------------------------------------------------------------------

_PROPERTY_RE = re.compile(
    r"\s*(article|dc|dcterm|og|twitter)\s*:\s*"
    r"(author|creator|description|published_time|title|site_name)\s*",
    re.IGNORECASE,
)
_NAME_RE = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|weibo:(article|webpage))\s*[\.:]\s*)?"
    r"(author|creator|description|title|site_name)\s*$",
    re.IGNORECASE,
)
_WHITESPACE_RE = re.compile(r"\s")


def extract_meta_values(soup: BeautifulSoup) -> dict[str, str]:
    """Collect namespaced <meta> values; later elements win per key."""
    values: dict[str, str] = {}

    for element in soup.find_all("meta"):
        if not isinstance(element, Tag):
            continue
        content = get_attr(element, "content")
        if not content:
            continue
        element_name = get_attr(element, "name")
        element_property = get_attr(element, "property")

        matches: list[str] = []
        if element_property:
            matches = [m.group(0) for m in _PROPERTY_RE.finditer(element_property)]
            # The first match in a multi-valued property wins
            for match in reversed(matches):
                key = _WHITESPACE_RE.sub("", match.lower())
                values[key] = content.strip()

        if not matches and element_name and _NAME_RE.match(element_name):
            key = _WHITESPACE_RE.sub("", element_name.lower()).replace(".", ":")
            values[key] = content.strip()

    return values


# ---------------------------------------------------------------------------
# Title heuristics
# ---------------------------------------------------------------------------

_HIERARCHY_SEPARATOR_RE = re.compile(r" [\|\-\\\/>»] ")
_STRONG_SEPARATOR_RE = re.compile(r" [\\\/>»] ")
_CUT_AFTER_LAST_RE = re.compile(r"(.*)[\|\-\\\/>»] .*", re.DOTALL)
_CUT_BEFORE_FIRST_RE = re.compile(r"[^\|\-\\\/>»]*[\|\-\\\/>»](.*)", re.DOTALL)
_SEPARATORS_RE = re.compile(r"[\|\-\\\/>»]+")


def _drops_one_segment(candidate: str, original: str) -> bool:
    """True if *candidate* is *original* without its first or last segment."""
    separators = list(_HIERARCHY_SEPARATOR_RE.finditer(original))
    if not separators:
        return False
    prefix = original[: separators[-1].start()]
    suffix = original[separators[0].end():]
    return candidate in (
        _NORMALIZE_RE.sub(" ", prefix.strip()),
        _NORMALIZE_RE.sub(" ", suffix.strip()),
    )


def document_title(soup: BeautifulSoup) -> str:
    title = soup.find("title")
    if not isinstance(title, Tag):
        return ""
    return _ISO_CLEANUP_RE.sub(" ", text_content(title)).strip()


def get_article_title(soup: BeautifulSoup) -> str:
    """Derive an article title from ``<title>``, trimming site-name decorations."""
    cur_title = orig_title = document_title(soup)
    had_separators = had_strong_separators = False

    if _HIERARCHY_SEPARATOR_RE.search(cur_title):
        had_separators = True
        had_strong_separators = bool(_STRONG_SEPARATOR_RE.search(cur_title))
        cur_title = _CUT_AFTER_LAST_RE.sub(r"\1", orig_title, count=1)

        # Too short: the site name came first, keep what follows it
        if _word_count(cur_title) < 3:
            cur_title = _CUT_BEFORE_FIRST_RE.sub(r"\1", orig_title, count=1)
    elif ": " in cur_title:
        trimmed = cur_title.strip()
        headings = soup.find_all(["h1", "h2"])
        if not any(text_content(h).strip() == trimmed for h in headings):
            cur_title = orig_title[orig_title.rfind(":") + 1:]

            if _word_count(cur_title) < 3:
                cur_title = orig_title[orig_title.find(":") + 1:]
            elif _word_count(orig_title[: orig_title.find(":")]) > 5:
                cur_title = orig_title
    elif len(cur_title) > 150 or len(cur_title) < 15:
        h_ones = soup.find_all("h1")
        if len(h_ones) == 1:
            cur_title = inner_text(h_ones[0])

    cur_title = _NORMALIZE_RE.sub(" ", cur_title.strip())

    # Few words left: only keep the cut if it removed exactly one segment
    cur_word_count = _word_count(cur_title)
    if orig_title and cur_word_count <= 4:
        explained = had_separators and (
            _drops_one_segment(cur_title, orig_title)
            or (
                had_strong_separators
                and cur_word_count == _word_count(_SEPARATORS_RE.sub("", orig_title)) - 1
            )
        )
        if not explained:
            cur_title = orig_title

    return cur_title


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(
    soup: BeautifulSoup,
    jsonld: dict[str, str] | None = None,
) -> ArticleMetadata:
    """Build :class:`ArticleMetadata` from <meta> tags, JSON-LD and the title.

    Args:
        soup:   Document to read.  Not mutated.
        jsonld: Values from :func:`extract_jsonld`, gathered earlier while the
                document still had its scripts.  ``None`` skips JSON-LD.
    """
    jsonld = jsonld or {}
    values = extract_meta_values(soup)

    title = _first(
        jsonld.get("title"),
        values.get("dc:title"),
        values.get("dcterm:title"),
        values.get("og:title"),
        values.get("weibo:article:title"),
        values.get("weibo:webpage:title"),
        values.get("title"),
        values.get("twitter:title"),
    )
    if not title:
        title = get_article_title(soup)

    byline = _first(
        jsonld.get("byline"),
        values.get("dc:creator"),
        values.get("dcterm:creator"),
        values.get("author"),
    )

    excerpt = _first(
        jsonld.get("excerpt"),
        values.get("dc:description"),
        values.get("dcterm:description"),
        values.get("og:description"),
        values.get("weibo:article:description"),
        values.get("weibo:webpage:description"),
        values.get("description"),
        values.get("twitter:description"),
    )

    site_name = _first(jsonld.get("site_name"), values.get("og:site_name"))

    published_raw = _first(
        jsonld.get("published_time"),
        values.get("article:published_time"),
    )
    published_time = _parse_date(published_raw) or published_raw

    return ArticleMetadata(
        title=(title or "").strip(),
        byline=byline,
        excerpt=excerpt,
        site_name=site_name,
        published_time=published_time,
    )
