"""Tree utilities shared by every extraction stage.

Everything here operates on a live BeautifulSoup tree and tolerates the tree
being mutated between calls: traversal helpers compute the next position from
the current node and the tree's shape at the time of the call.

Tags are compared by identity throughout.  ``bs4.Tag.__eq__`` compares
markup, so two distinct but identical ``<p>`` elements are "equal";
membership tests must use ``is``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator
from enum import Flag, auto
from functools import lru_cache
from typing import Generic, TypeVar

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement, PreformattedString

V = TypeVar("V")

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------

_NORMALIZE_RE = re.compile(r"\s{2,}")
_WHITESPACE_RE = re.compile(r"^\s*$")
_HAS_CONTENT_RE = re.compile(r"\S\Z")
_HASH_URL_RE = re.compile(r"^#.+")
_DISPLAY_NONE_RE = re.compile(r"(^|;)\s*display\s*:\s*none\s*(!important)?\s*(;|$)", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Tag categories
# ---------------------------------------------------------------------------

class TagCategory(Flag):
    """Closed set of tag roles the extractor cares about.

    A tag may belong to several categories (``img`` is both phrasing content
    and a block marker for div-to-p conversion).
    """

    NONE = 0
    PHRASING = auto()
    # Phrasing only when every child is phrasing (a, del, ins)
    CONDITIONAL_PHRASING = auto()
    # Presence as a child keeps a <div> from being retagged <p>
    BLOCK = auto()
    HEADING = auto()
    SCORABLE = auto()
    EMBED = auto()
    MEDIA = auto()
    SECTIONING = auto()
    # Kept as-is when appended as a sibling of the top candidate
    ALTER_EXEMPT = auto()
    # Loses width/height during style cleanup
    DEPRECATED_SIZE = auto()
    FORM_CONTROL = auto()


_PHRASING_TAGS = (
    "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
    "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
    "mark", "math", "meter", "noscript", "object", "output", "progress", "q",
    "ruby", "samp", "script", "select", "small", "span", "strong", "sub",
    "sup", "textarea", "time", "var", "wbr",
)

_CATEGORY_MEMBERS: tuple[tuple[TagCategory, tuple[str, ...]], ...] = (
    (TagCategory.PHRASING, _PHRASING_TAGS),
    (TagCategory.CONDITIONAL_PHRASING, ("a", "del", "ins")),
    (TagCategory.BLOCK, ("blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul")),
    (TagCategory.HEADING, ("h1", "h2", "h3", "h4", "h5", "h6")),
    (TagCategory.SCORABLE, ("section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre")),
    (TagCategory.EMBED, ("object", "embed", "iframe")),
    (TagCategory.MEDIA, ("img", "picture", "figure", "video", "audio", "source")),
    (
        TagCategory.SECTIONING,
        ("article", "aside", "footer", "header", "hgroup", "main", "nav", "section"),
    ),
    (TagCategory.ALTER_EXEMPT, ("div", "article", "section", "p")),
    (TagCategory.DEPRECATED_SIZE, ("table", "th", "td", "hr", "pre")),
    (TagCategory.FORM_CONTROL, ("input", "textarea", "select", "button")),
)


@lru_cache(maxsize=256)
def categories_for(name: str) -> TagCategory:
    """Resolve the category set of a lowercase tag name."""
    result = TagCategory.NONE
    for category, members in _CATEGORY_MEMBERS:
        if name in members:
            result |= category
    return result


def tags_in(category: TagCategory) -> list[str]:
    """Tag names belonging to *category*, suitable for ``find_all``."""
    names: list[str] = []
    for member_category, members in _CATEGORY_MEMBERS:
        if member_category & category:
            names.extend(name for name in members if name not in names)
    return names


def categories(node: PageElement | None) -> TagCategory:
    if not is_element(node):
        return TagCategory.NONE
    return categories_for(node.name)  # type: ignore[union-attr]


def in_category(node: PageElement | None, category: TagCategory) -> bool:
    return bool(categories(node) & category)


# ---------------------------------------------------------------------------
# Node kinds and attributes
# ---------------------------------------------------------------------------

def is_element(node: PageElement | None) -> bool:
    """True for real elements; the BeautifulSoup document object is not one."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: PageElement | None) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def get_attr(node: Tag, name: str) -> str | None:
    """Return an attribute as a plain string (bs4 splits multi-valued ones)."""
    value = node.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def class_name(node: Tag) -> str:
    return get_attr(node, "class") or ""


def node_id(node: Tag) -> str:
    return get_attr(node, "id") or ""


def match_string(node: Tag) -> str:
    """Class and id joined the way the keyword patterns expect."""
    return f"{class_name(node)} {node_id(node)}"


def attribute_items(node: Tag) -> list[tuple[str, str]]:
    """Snapshot of (name, value) pairs with multi-valued attributes joined."""
    return [
        (name, " ".join(value) if isinstance(value, list) else str(value))
        for name, value in node.attrs.items()
    ]


def attribute_values(node: Tag) -> Iterator[str]:
    for _, value in attribute_items(node):
        yield value


def is_probably_visible(node: Tag) -> bool:
    style = get_attr(node, "style") or ""
    if _DISPLAY_NONE_RE.search(style):
        return False
    if node.has_attr("hidden"):
        return False
    if get_attr(node, "aria-hidden") == "true":
        return "fallback-image" in class_name(node)
    return True


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

def element_children(node: Tag) -> list[Tag]:
    return [child for child in node.contents if is_element(child)]


def first_element_child(node: Tag) -> Tag | None:
    for child in node.contents:
        if is_element(child):
            return child  # type: ignore[return-value]
    return None


def next_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.next_sibling
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next_sibling
    return sibling  # type: ignore[return-value]


def previous_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.previous_sibling
    while sibling is not None and not is_element(sibling):
        sibling = sibling.previous_sibling
    return sibling  # type: ignore[return-value]


def get_next_node(node: Tag, ignore_self_and_kids: bool = False) -> Tag | None:
    """Pre-order successor of *node* in the tree as it is right now."""
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child
    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling
    parent = node.parent
    while parent is not None and next_element_sibling(parent) is None:
        parent = parent.parent
    if parent is None:
        return None
    return next_element_sibling(parent)


def next_node(node: PageElement | None) -> PageElement | None:
    """Skip whitespace-only text nodes starting at *node*."""
    while (
        node is not None
        and not is_element(node)
        and _WHITESPACE_RE.match(str(node))
    ):
        node = node.next_sibling
    return node


def node_ancestors(node: PageElement, max_depth: int = 0) -> list[Tag]:
    ancestors: list[Tag] = []
    depth = 0
    while node.parent is not None:
        ancestors.append(node.parent)
        depth += 1
        if max_depth and depth == max_depth:
            break
        node = node.parent
    return ancestors


def has_ancestor_tag(
    node: PageElement,
    tag: str,
    max_depth: int = 3,
    predicate: Callable[[Tag], bool] | None = None,
) -> bool:
    """True if an ancestor named *tag* exists within *max_depth* levels.

    ``max_depth <= 0`` searches all the way to the root.
    """
    depth = 0
    while node.parent is not None:
        if max_depth > 0 and depth > max_depth:
            return False
        parent = node.parent
        if parent.name == tag and (predicate is None or predicate(parent)):
            return True
        node = parent
        depth += 1
    return False


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------

def remove_and_get_next(node: Tag) -> Tag | None:
    following = get_next_node(node, ignore_self_and_kids=True)
    node.extract()
    return following


def remove_nodes(
    nodes: Iterable[Tag],
    predicate: Callable[[Tag], bool] | None = None,
) -> None:
    """Detach each node (last first) that is still attached and passes *predicate*."""
    for node in reversed(list(nodes)):
        if node.parent is None:
            continue
        if predicate is None or predicate(node):
            node.extract()


def set_node_tag(node: Tag, name: str) -> Tag:
    """Retag *node* in place; identity, attributes and children are preserved."""
    node.name = name
    node.can_be_empty_element = False
    return node


# ---------------------------------------------------------------------------
# Text measures
# ---------------------------------------------------------------------------

def text_content(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    if is_text(node):
        return str(node)
    return ""


def inner_text(node: PageElement, normalize_spaces: bool = True) -> str:
    text = text_content(node).strip()
    if normalize_spaces:
        return _NORMALIZE_RE.sub(" ", text)
    return text


def char_count(node: Tag, separator: str = ",") -> int:
    return len(inner_text(node).split(separator)) - 1


def link_density(element: Tag) -> float:
    """Share of *element*'s text inside links; same-page hash links count 0.3."""
    text_length = len(inner_text(element))
    if text_length == 0:
        return 0.0

    link_length = 0.0
    for link in element.find_all("a"):
        href = get_attr(link, "href")
        coefficient = 0.3 if href and _HASH_URL_RE.match(href) else 1.0
        link_length += len(inner_text(link)) * coefficient
    return link_length / text_length


def text_density(element: Tag, tags: Iterable[str]) -> float:
    text_length = len(inner_text(element))
    if text_length == 0:
        return 0.0
    children_length = sum(len(inner_text(child)) for child in element.find_all(list(tags)))
    return children_length / text_length


# ---------------------------------------------------------------------------
# Structural predicates
# ---------------------------------------------------------------------------

def is_whitespace(node: PageElement) -> bool:
    if is_text(node):
        return not str(node).strip()
    return is_element(node) and node.name == "br"  # type: ignore[union-attr]


def is_phrasing_content(node: PageElement) -> bool:
    if is_text(node):
        return True
    found = categories(node)
    if found & TagCategory.PHRASING:
        return True
    if found & TagCategory.CONDITIONAL_PHRASING:
        return all(is_phrasing_content(child) for child in node.contents)  # type: ignore[union-attr]
    return False


def is_element_without_content(node: PageElement) -> bool:
    if not is_element(node):
        return False
    if node.get_text().strip():  # type: ignore[union-attr]
        return False
    children = element_children(node)  # type: ignore[arg-type]
    if not children:
        return True
    breaks = len(node.find_all("br")) + len(node.find_all("hr"))  # type: ignore[union-attr]
    return len(children) == breaks


def has_single_tag_inside_element(element: Tag, tag: str) -> bool:
    children = element_children(element)
    if len(children) != 1 or children[0].name != tag:
        return False
    return not any(
        is_text(child) and _HAS_CONTENT_RE.search(str(child))
        for child in element.contents
    )


def has_child_block_element(element: Tag) -> bool:
    return any(
        is_element(child)
        and (in_category(child, TagCategory.BLOCK) or has_child_block_element(child))  # type: ignore[arg-type]
        for child in element.contents
    )


def is_single_image(node: Tag) -> bool:
    if node.name == "img":
        return True
    children = element_children(node)
    if len(children) != 1 or node.get_text().strip():
        return False
    return is_single_image(children[0])


# ---------------------------------------------------------------------------
# Identity-keyed side table
# ---------------------------------------------------------------------------

class NodeTable(Generic[V]):
    """Per-node side record keyed by node identity.

    The node itself is retained alongside the value so that its ``id()`` can
    not be recycled while the table is alive.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Tag, V]] = {}

    def __contains__(self, node: object) -> bool:
        return id(node) in self._entries

    def __getitem__(self, node: Tag) -> V:
        return self._entries[id(node)][1]

    def __setitem__(self, node: Tag, value: V) -> None:
        self._entries[id(node)] = (node, value)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, node: Tag, default: V | None = None) -> V | None:
        entry = self._entries.get(id(node))
        return entry[1] if entry is not None else default

    def nodes(self) -> list[Tag]:
        return [node for node, _ in self._entries.values()]
