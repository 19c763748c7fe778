"""Candidate scoring: the pre-order walk that prunes and queues elements,
and the pass that spreads paragraph scores up to their ancestors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from readr.settings import (
    ANCESTOR_SCORE_DEPTH,
    MIN_SCORABLE_TEXT_LENGTH,
    ReadabilityOptions,
    Strictness,
)

from .dom import (
    NodeTable,
    TagCategory,
    class_name,
    element_children,
    get_attr,
    get_next_node,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside_element,
    in_category,
    inner_text,
    is_element,
    is_element_without_content,
    is_phrasing_content,
    is_probably_visible,
    is_whitespace,
    link_density,
    match_string,
    node_ancestors,
    node_id,
    remove_and_get_next,
    set_node_tag,
    text_content,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Class/id keyword patterns
# ---------------------------------------------------------------------------

UNLIKELY_CANDIDATES_RE = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|"
    r"extra|footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|"
    r"sidebar|skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|"
    r"pager|popup|yom-hierarchical-nav|nav-|navigation|nav_|masthead|media-credit|"
    r"meta|outbrain|promo|scroll|share|share-bar|subscription|taboola|taxonomy|"
    r"terms-|terms_|-terms|_terms|ad-wrap",
    re.IGNORECASE,
)
MAYBE_CANDIDATE_RE = re.compile(r"and|article|body|column|content|main|shadow", re.IGNORECASE)
POSITIVE_RE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.IGNORECASE,
)
NEGATIVE_RE = re.compile(
    r"hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|foot|footer|"
    r"footnote|gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|"
    r"shoutbox|sidebar|skyscraper|sponsor|shopping|tags|tool|widget",
    re.IGNORECASE,
)
BYLINE_RE = re.compile(r"byline|author|dateline|writtenby|p-author", re.IGNORECASE)

_UNLIKELY_ROLES = frozenset(
    {"complementary", "list", "menu", "navigation", "alert", "status", "form"},
)

# Removed when they hold nothing but whitespace, <br> and <hr>
_EMPTY_WRAPPER_TAGS = frozenset(
    {"div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"},
)

_TAG_SEED_SCORES: dict[str, int] = {
    "div": 5,
    "pre": 3,
    "td": 3,
    "blockquote": 3,
    "address": -3,
    "ol": -3,
    "ul": -3,
    "dl": -3,
    "dd": -3,
    "dt": -3,
    "li": -3,
    "form": -3,
    "h1": -5,
    "h2": -5,
    "h3": -5,
    "h4": -5,
    "h5": -5,
    "h6": -5,
    "th": -5,
}


# ---------------------------------------------------------------------------
# Per-pass state
# ---------------------------------------------------------------------------

@dataclass
class PassState:
    """Everything one scoring/selection/cleaning pass reads or writes.

    ``scores`` doubles as the candidate set: a node is a candidate exactly
    when it has an entry.
    """

    soup: BeautifulSoup
    flags: Strictness
    options: ReadabilityOptions
    scores: NodeTable[float] = field(default_factory=NodeTable)
    data_tables: NodeTable[bool] = field(default_factory=NodeTable)
    byline: str | None = None

    def is_active(self, flag: Strictness) -> bool:
        return bool(self.flags & flag)

    def is_data_table(self, table: Tag) -> bool:
        return bool(self.data_tables.get(table, False))


def class_weight(node: Tag, state: PassState) -> int:
    """±25 for each of class and id matching the negative/positive keywords."""
    if not state.is_active(Strictness.WEIGHT_CLASSES):
        return 0

    weight = 0
    for value in (class_name(node), node_id(node)):
        if not value:
            continue
        if NEGATIVE_RE.search(value):
            weight -= 25
        if POSITIVE_RE.search(value):
            weight += 25
    return weight


def initialize_node(node: Tag, state: PassState) -> None:
    state.scores[node] = float(_TAG_SEED_SCORES.get(node.name, 0) + class_weight(node, state))


# ---------------------------------------------------------------------------
# Byline capture
# ---------------------------------------------------------------------------

def _is_valid_byline(text: str) -> bool:
    text = text.strip()
    return 0 < len(text) < 100


def check_byline(node: Tag, matched: str, state: PassState) -> bool:
    """Capture the first byline-looking node; True means "remove it"."""
    if state.byline:
        return False

    rel = get_attr(node, "rel")
    itemprop = get_attr(node, "itemprop")
    looks_like_byline = (
        rel == "author"
        or (itemprop is not None and "author" in itemprop)
        or bool(BYLINE_RE.search(matched))
    )
    text = text_content(node)
    if looks_like_byline and _is_valid_byline(text):
        state.byline = text.strip()
        logger.debug("Captured byline %r", state.byline)
        return True
    return False


# ---------------------------------------------------------------------------
# Pre-order walk
# ---------------------------------------------------------------------------

def _wrap_phrasing_runs(div: Tag, soup: BeautifulSoup) -> None:
    """Group runs of phrasing content directly inside *div* into <p> elements."""
    paragraph: Tag | None = None
    child = div.contents[0] if div.contents else None
    while child is not None:
        next_sibling = child.next_sibling
        if is_phrasing_content(child):
            if paragraph is not None:
                paragraph.append(child)
            elif not is_whitespace(child):
                paragraph = soup.new_tag("p")
                child.replace_with(paragraph)
                paragraph.append(child)
        elif paragraph is not None:
            while paragraph.contents and is_whitespace(paragraph.contents[-1]):
                paragraph.contents[-1].extract()
            paragraph = None
        child = next_sibling


def _is_unlikely_candidate(node: Tag, matched: str) -> bool:
    return (
        bool(UNLIKELY_CANDIDATES_RE.search(matched))
        and not MAYBE_CANDIDATE_RE.search(matched)
        and not has_ancestor_tag(node, "table")
        and not has_ancestor_tag(node, "code")
        and node.name not in ("body", "a")
    )


def collect_elements_to_score(page: Tag, state: PassState) -> list[Tag]:
    """Walk *page* pruning boilerplate; return the elements worth scoring.

    The tree is mutated as the walk goes: removed nodes are skipped via
    ``remove_and_get_next`` and bare ``<div>`` elements are normalised into
    paragraphs.
    """
    strip_unlikely = state.is_active(Strictness.STRIP_UNLIKELYS)
    elements_to_score: list[Tag] = []
    node: Tag | None = page

    while node is not None:
        matched = match_string(node)

        if not is_probably_visible(node):
            logger.debug("Removing hidden node - %s", matched)
            node = remove_and_get_next(node)
            continue

        if get_attr(node, "aria-modal") == "true" and get_attr(node, "role") == "dialog":
            node = remove_and_get_next(node)
            continue

        if check_byline(node, matched, state):
            node = remove_and_get_next(node)
            continue

        if strip_unlikely:
            if _is_unlikely_candidate(node, matched):
                logger.debug("Removing unlikely candidate - %s", matched)
                node = remove_and_get_next(node)
                continue

            role = get_attr(node, "role")
            if role in _UNLIKELY_ROLES:
                logger.debug("Removing role=%s - %s", role, matched)
                node = remove_and_get_next(node)
                continue

        if node.name in _EMPTY_WRAPPER_TAGS and is_element_without_content(node):
            node = remove_and_get_next(node)
            continue

        if in_category(node, TagCategory.SCORABLE):
            elements_to_score.append(node)

        if node.name == "div":
            _wrap_phrasing_runs(node, state.soup)

            # A div holding one paragraph is just that paragraph
            if has_single_tag_inside_element(node, "p") and link_density(node) < 0.25:
                new_node = element_children(node)[0]
                node.replace_with(new_node)
                node = new_node
                elements_to_score.append(node)
            elif not has_child_block_element(node):
                set_node_tag(node, "p")
                elements_to_score.append(node)

        node = get_next_node(node)

    return elements_to_score


# ---------------------------------------------------------------------------
# Score propagation
# ---------------------------------------------------------------------------

def _score_divider(level: int) -> int:
    if level == 0:
        return 1
    if level == 1:
        return 2
    return level * 3


def score_elements(elements: list[Tag], state: PassState) -> list[Tag]:
    """Add each element's score to its ancestors; return the new candidates."""
    candidates: list[Tag] = []

    for element in elements:
        if element.parent is None or not is_element(element.parent):
            continue

        text = inner_text(element)
        if len(text) < MIN_SCORABLE_TEXT_LENGTH:
            continue

        ancestors = node_ancestors(element, ANCESTOR_SCORE_DEPTH)
        if not ancestors:
            continue

        content_score = 1
        # One point per comma-separated chunk
        content_score += len(text.split(","))
        # One point per 100 characters, at most three
        content_score += min(len(text) // 100, 3)

        for level, ancestor in enumerate(ancestors):
            if not is_element(ancestor) or not is_element(ancestor.parent):
                continue

            if ancestor not in state.scores:
                initialize_node(ancestor, state)
                candidates.append(ancestor)

            state.scores[ancestor] += content_score / _score_divider(level)

    return candidates
