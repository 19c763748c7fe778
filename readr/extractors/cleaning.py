"""Tree cleanup: conditional removal, data-table marking, embed filtering.

Two entry points run the cleanups in sequence: :func:`clean_page` prunes the
page before scoring, :func:`prep_article` tidies the gathered article.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from bs4 import Tag

from readr.settings import SHARE_ELEMENT_THRESHOLD, Strictness

from .dom import (
    TagCategory,
    attribute_values,
    char_count,
    element_children,
    get_next_node,
    has_ancestor_tag,
    has_single_tag_inside_element,
    in_category,
    inner_text,
    is_element,
    is_phrasing_content,
    link_density,
    match_string,
    next_node,
    remove_and_get_next,
    remove_nodes,
    set_node_tag,
    tags_in,
    text_content,
    text_density,
)
from .preprocess import fix_lazy_images
from .scoring import PassState, class_weight

logger = logging.getLogger(__name__)

VIDEOS_RE = re.compile(
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com|"
    r"(archive|upload\.wikimedia)\.org|player\.twitch\.tv)",
    re.IGNORECASE,
)
SHARE_ELEMENTS_RE = re.compile(r"(\b|_)(share|sharedaddy)(\b|_)", re.IGNORECASE)

_PRESENTATIONAL_ATTRIBUTES = (
    "align", "background", "bgcolor", "border", "cellpadding", "cellspacing",
    "frame", "hspace", "rules", "style", "valign", "vspace",
)

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_EMBED_TAGS = ("object", "embed", "iframe")
_FORM_CONTROL_TAGS = ("input", "textarea", "select", "button")

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

def clean_styles(root: Tag) -> None:
    """Strip presentational attributes from *root* and its descendants.

    ``<svg>`` subtrees are left untouched.
    """
    stack = [root]
    while stack:
        element = stack.pop()
        if element.name == "svg":
            continue

        for name in _PRESENTATIONAL_ATTRIBUTES:
            if element.has_attr(name):
                del element[name]

        if in_category(element, TagCategory.DEPRECATED_SIZE):
            for name in ("width", "height"):
                if element.has_attr(name):
                    del element[name]

        stack.extend(element_children(element))


# ---------------------------------------------------------------------------
# Data tables
# ---------------------------------------------------------------------------

def _parse_span(value: str | None) -> int:
    if not value:
        return 0
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else 0


def row_and_column_count(table: Tag) -> tuple[int, int]:
    rows = 0
    columns = 0
    for tr in table.find_all("tr"):
        rows += _parse_span(tr.get("rowspan")) or 1

        columns_in_row = 0
        for cell in tr.find_all("td"):
            columns_in_row += _parse_span(cell.get("colspan")) or 1
        columns = max(columns, columns_in_row)
    return rows, columns


def is_data_table(table: Tag) -> bool:
    """Classify *table* as tabular data (True) or layout scaffolding (False)."""
    if table.get("role") == "presentation":
        return False
    if table.get("datatable") == "0":
        return False
    if table.has_attr("summary"):
        return True

    caption = table.find("caption")
    if isinstance(caption, Tag) and caption.contents:
        return True

    if table.find(["col", "colgroup", "tfoot", "thead", "th"]) is not None:
        return True

    # Tables nested in a table are layout
    if table.find("table") is not None:
        return False

    rows, columns = row_and_column_count(table)
    if rows >= 10 or columns > 4:
        return True
    return rows * columns > 10


def mark_data_tables(root: Tag, state: PassState) -> None:
    for table in root.find_all("table"):
        state.data_tables[table] = is_data_table(table)


# ---------------------------------------------------------------------------
# Removal by tag
# ---------------------------------------------------------------------------

def _is_allowed_embed(element: Tag, state: PassState) -> bool:
    allowed = state.options.allowed_video_regex
    for value in attribute_values(element):
        if allowed is not None and allowed.search(value):
            return True
        if VIDEOS_RE.search(value):
            return True
    return element.name == "object" and bool(VIDEOS_RE.search(element.decode_contents()))


def clean(root: Tag, tag: str, state: PassState) -> None:
    """Remove every *tag* under *root*; known video embeds survive."""
    if tag in _EMBED_TAGS:
        remove_nodes(root.find_all(tag), lambda element: not _is_allowed_embed(element, state))
    else:
        remove_nodes(root.find_all(tag))


def clean_headers(root: Tag, state: PassState) -> None:
    """Remove ``<h1>``/``<h2>`` whose class/id weight is negative."""
    remove_nodes(
        root.find_all(["h1", "h2"]),
        lambda header: class_weight(header, state) < 0,
    )


def clean_matched_nodes(root: Tag, predicate: Callable[[Tag, str], bool]) -> None:
    """Remove descendants of *root* for which ``predicate(node, match_string)`` holds."""
    end = get_next_node(root, ignore_self_and_kids=True)
    node = get_next_node(root)
    while node is not None and node is not end:
        if predicate(node, match_string(node)):
            node = remove_and_get_next(node)
        else:
            node = get_next_node(node)


def _is_share_element(node: Tag, matched: str) -> bool:
    return bool(SHARE_ELEMENTS_RE.search(matched)) and len(text_content(node)) < SHARE_ELEMENT_THRESHOLD


# ---------------------------------------------------------------------------
# Conditional removal
# ---------------------------------------------------------------------------

def _should_remove_conditionally(node: Tag, tag: str, state: PassState) -> bool:
    is_list = tag in ("ul", "ol")
    if not is_list:
        list_length = sum(len(inner_text(lst)) for lst in node.find_all(["ul", "ol"]))
        node_length = len(inner_text(node))
        is_list = node_length > 0 and list_length / node_length > 0.9

    if tag == "table" and state.is_data_table(node):
        return False

    # Anything inside a data table stays
    if has_ancestor_tag(node, "table", -1, state.is_data_table):
        return False

    if has_ancestor_tag(node, "code"):
        return False

    weight = class_weight(node, state)
    if weight < 0:
        return True

    if char_count(node, ",") >= 10:
        return False

    paragraphs = len(node.find_all("p"))
    images = len(node.find_all("img"))
    list_items = len(node.find_all("li")) - 100
    inputs = len(node.find_all("input"))
    heading_density = text_density(node, _HEADING_TAGS)

    embed_count = 0
    allowed = state.options.allowed_video_regex
    for embed in node.find_all(list(_EMBED_TAGS)):
        for value in attribute_values(embed):
            if allowed is not None and allowed.search(value):
                return False
            if VIDEOS_RE.search(value):
                embed_count += 1
        if embed.name == "object" and VIDEOS_RE.search(embed.decode_contents()):
            embed_count += 1

    density = link_density(node)
    content_length = len(inner_text(node))
    in_figure = has_ancestor_tag(node, "figure")

    have_to_remove = (
        (images > 1 and paragraphs / images < 0.5 and not in_figure)
        or (not is_list and list_items > paragraphs)
        or (inputs > paragraphs // 3)
        or (
            not is_list
            and heading_density < 0.9
            and content_length < 25
            and (images == 0 or images > 2)
            and not in_figure
        )
        or (not is_list and weight < 25 and density > 0.2)
        or (weight >= 25 and density > 0.5)
        or (embed_count == 1 and content_length < 75)
        or embed_count > 1
    )

    # Image galleries are lists whose items each hold one image
    if is_list and have_to_remove:
        for child in element_children(node):
            if len(element_children(child)) > 1:
                return have_to_remove
        if images == len(node.find_all("li")):
            return False

    return have_to_remove


def clean_conditionally(root: Tag, tag: str, state: PassState) -> None:
    """Remove *tag* elements under *root* that look like boilerplate."""
    if not state.is_active(Strictness.CLEAN_CONDITIONALLY):
        return
    remove_nodes(
        root.find_all(tag),
        lambda node: _should_remove_conditionally(node, tag, state),
    )


# ---------------------------------------------------------------------------
# Paragraph and table tidy-up
# ---------------------------------------------------------------------------

def remove_empty_paragraphs(root: Tag) -> None:
    remove_nodes(
        root.find_all("p"),
        lambda p: not p.find_all(["img", "embed", "object", "iframe"]) and not inner_text(p, False),
    )


def remove_brs_before_paragraphs(root: Tag) -> None:
    for br in root.find_all("br"):
        following = next_node(br.next_sibling)
        if is_element(following) and following.name == "p":  # type: ignore[union-attr]
            br.extract()


def unwrap_single_cell_tables(root: Tag) -> None:
    """Replace a table holding exactly one cell with that cell's content."""
    for table in root.find_all("table"):
        body = element_children(table)[0] if has_single_tag_inside_element(table, "tbody") else table
        if not has_single_tag_inside_element(body, "tr"):
            continue
        row = element_children(body)[0]
        if not has_single_tag_inside_element(row, "td"):
            continue
        cell = element_children(row)[0]
        name = "p" if all(is_phrasing_content(child) for child in cell.contents) else "div"
        table.replace_with(set_node_tag(cell, name))


def _clean_common_tail(root: Tag, state: PassState) -> None:
    for tag in ("iframe", *_FORM_CONTROL_TAGS):
        clean(root, tag, state)
    clean_headers(root, state)

    for tag in ("table", "ul", "div"):
        clean_conditionally(root, tag, state)

    remove_empty_paragraphs(root)
    remove_brs_before_paragraphs(root)
    unwrap_single_cell_tables(root)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def clean_page(page: Tag, state: PassState) -> None:
    """Strip obvious non-content from the page before scoring."""
    mark_data_tables(page, state)

    remove_nodes(page.find_all([*_FORM_CONTROL_TAGS, "header"]))
    clean_conditionally(page, "form", state)
    clean_conditionally(page, "fieldset", state)
    remove_nodes(page.find_all(["object", "embed", "footer", "link", "aside"]))

    remove_nodes(
        page.find_all(tags_in(TagCategory.SECTIONING)),
        lambda element: _is_share_element(element, match_string(element)),
    )
    remove_nodes(
        page.find_all(["h1", "h2"]),
        lambda header: bool(SHARE_ELEMENTS_RE.search(match_string(header))),
    )

    _clean_common_tail(page, state)


def prep_article(article_content: Tag, state: PassState) -> None:
    """Final cleanup of the gathered article content."""
    clean_styles(article_content)
    mark_data_tables(article_content, state)
    fix_lazy_images(article_content, state.soup)

    clean_conditionally(article_content, "form", state)
    clean_conditionally(article_content, "fieldset", state)
    for tag in ("object", "embed", "footer", "link", "aside"):
        clean(article_content, tag, state)

    for child in element_children(article_content):
        clean_matched_nodes(child, _is_share_element)

    _clean_common_tail(article_content, state)
    logger.debug("Article content prepared: %d chars", len(inner_text(article_content)))
