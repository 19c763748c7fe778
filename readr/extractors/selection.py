"""Top-candidate selection and sibling gathering."""

from __future__ import annotations

import logging
import re

from bs4 import Tag

from readr.settings import MINIMUM_TOP_CANDIDATES

from .dom import (
    TagCategory,
    class_name,
    element_children,
    in_category,
    inner_text,
    is_element,
    link_density,
    node_ancestors,
    set_node_tag,
)
from .scoring import PassState, initialize_node

logger = logging.getLogger(__name__)

_SENTENCE_END_RE = re.compile(r"\.( |$)")

# Ancestors of the best candidate must reach this share of its score to
# count towards common-ancestor promotion
_ALTERNATIVE_SCORE_RATIO = 0.75


def _rank_candidates(candidates: list[Tag], state: PassState) -> list[Tag]:
    """Scale each candidate by ``1 - link density`` and keep the best N."""
    limit = state.options.n_top_candidates
    top: list[Tag] = []

    for candidate in candidates:
        score = state.scores[candidate] * (1 - link_density(candidate))
        state.scores[candidate] = score
        logger.debug("Candidate <%s class=%r> scored %.2f", candidate.name, class_name(candidate), score)

        for slot in range(limit):
            if slot >= len(top) or score > state.scores[top[slot]]:
                top.insert(slot, candidate)
                if len(top) > limit:
                    top.pop()
                break

    return top


def _promote_to_common_ancestor(top: list[Tag], state: PassState) -> Tag:
    """Move up to an ancestor shared by several near-best candidates."""
    top_candidate = top[0]
    top_score = state.scores[top_candidate]

    alternative_ancestors: list[list[Tag]] = []
    for other in top[1:]:
        if top_score and state.scores[other] / top_score >= _ALTERNATIVE_SCORE_RATIO:
            alternative_ancestors.append(node_ancestors(other))

    if len(alternative_ancestors) < MINIMUM_TOP_CANDIDATES:
        return top_candidate

    parent = top_candidate.parent
    while is_element(parent) and parent.name != "body":
        lists_containing = 0
        for ancestors in alternative_ancestors:
            if lists_containing >= MINIMUM_TOP_CANDIDATES:
                break
            if any(ancestor is parent for ancestor in ancestors):
                lists_containing += 1
        if lists_containing >= MINIMUM_TOP_CANDIDATES:
            logger.debug("Promoted top candidate to common ancestor <%s>", parent.name)
            return parent
        parent = parent.parent

    return top_candidate


def _climb_scored_ancestors(top_candidate: Tag, state: PassState) -> Tag:
    """Walk up while parents keep a comparable score; adopt one that beats it."""
    parent = top_candidate.parent
    last_score = state.scores[top_candidate]
    score_threshold = last_score / 3

    while is_element(parent) and parent.name != "body":
        if parent not in state.scores:
            parent = parent.parent
            continue
        parent_score = state.scores[parent]
        if parent_score < score_threshold:
            break
        if parent_score > last_score:
            return parent
        last_score = parent_score
        parent = parent.parent

    return top_candidate


def select_top_candidate(candidates: list[Tag], page: Tag, state: PassState) -> tuple[Tag, bool]:
    """Pick the element most likely to hold the article.

    Returns ``(top_candidate, created)``; ``created`` is True when nothing
    usable was scored and the whole page was wrapped in a fresh ``<div>``.
    """
    top = _rank_candidates(candidates, state)

    if not top or top[0].name == "body":
        top_candidate = state.soup.new_tag("div")
        while page.contents:
            top_candidate.append(page.contents[0])
        page.append(top_candidate)
        initialize_node(top_candidate, state)
        logger.debug("No usable candidate; wrapping the whole page")
        return top_candidate, True

    top_candidate = _promote_to_common_ancestor(top, state)
    if top_candidate not in state.scores:
        initialize_node(top_candidate, state)

    top_candidate = _climb_scored_ancestors(top_candidate, state)

    # An only child carries nothing its parent does not
    parent = top_candidate.parent
    while is_element(parent) and parent.name != "body" and len(element_children(parent)) == 1:
        top_candidate = parent
        parent = top_candidate.parent

    if top_candidate not in state.scores:
        initialize_node(top_candidate, state)

    return top_candidate, False


# ---------------------------------------------------------------------------
# Siblings
# ---------------------------------------------------------------------------

def _is_related_paragraph(sibling: Tag) -> bool:
    if sibling.name != "p":
        return False
    density = link_density(sibling)
    content = inner_text(sibling)
    length = len(content)
    if length > 80:
        return density < 0.25
    return 0 < length and density == 0 and bool(_SENTENCE_END_RE.search(content))


def append_siblings(top_candidate: Tag, state: PassState) -> Tag:
    """Collect *top_candidate* and its related siblings into a new ``<div>``."""
    article_content = state.soup.new_tag("div")
    top_score = state.scores[top_candidate]
    sibling_threshold = max(10.0, top_score * 0.2)
    top_class = class_name(top_candidate)
    parent = top_candidate.parent

    siblings = element_children(parent) if parent is not None else [top_candidate]
    index = 0
    while index < len(siblings):
        sibling = siblings[index]

        if sibling is top_candidate:
            append = True
        else:
            bonus = top_score * 0.2 if top_class and class_name(sibling) == top_class else 0.0
            if sibling in state.scores and state.scores[sibling] + bonus >= sibling_threshold:
                append = True
            else:
                append = _is_related_paragraph(sibling)

        if not append:
            index += 1
            continue

        logger.debug("Appending <%s class=%r> to article", sibling.name, class_name(sibling))
        if not in_category(sibling, TagCategory.ALTER_EXEMPT):
            set_node_tag(sibling, "div")
        article_content.append(sibling)

        # The appended node has left the parent; the same index now points
        # at its successor
        if parent is None:
            break
        siblings = element_children(parent)

    return article_content
