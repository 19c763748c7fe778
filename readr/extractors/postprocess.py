"""Output normalisation applied to the accepted article content."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

from .dom import (
    TagCategory,
    class_name,
    element_children,
    get_attr,
    get_next_node,
    has_single_tag_inside_element,
    is_element_without_content,
    node_id,
    remove_and_get_next,
    tags_in,
)
from .urlnorm import absolutize_srcset, to_absolute_uri

logger = logging.getLogger(__name__)


def fix_relative_uris(
    article_content: Tag,
    soup: BeautifulSoup,
    base: str,
    document_uri: str,
) -> None:
    """Rewrite link and media URLs to absolute form.

    ``javascript:`` links are replaced by their text.
    """
    for link in article_content.find_all("a"):
        href = get_attr(link, "href")
        if not href:
            continue
        if href.startswith("javascript:"):
            link.replace_with(soup.new_string(link.get_text()))
        else:
            link["href"] = to_absolute_uri(href, base, document_uri)

    for media in article_content.find_all(tags_in(TagCategory.MEDIA)):
        for name in ("src", "poster"):
            value = get_attr(media, name)
            if value:
                media[name] = to_absolute_uri(value, base, document_uri)

        srcset = get_attr(media, "srcset")
        if srcset:
            media["srcset"] = absolutize_srcset(srcset, base, document_uri)


def simplify_nested_elements(article_content: Tag) -> None:
    """Drop empty wrappers and collapse ``div > div`` chains into one element."""
    node: Tag | None = article_content
    while node is not None:
        if (
            node.parent is not None
            and node.name in ("div", "section")
            and not node_id(node).startswith("readability")
        ):
            if is_element_without_content(node):
                node = remove_and_get_next(node)
                continue
            if has_single_tag_inside_element(node, "div") or has_single_tag_inside_element(node, "section"):
                child = element_children(node)[0]
                for name, value in node.attrs.items():
                    child[name] = list(value) if isinstance(value, list) else value
                node.replace_with(child)
                node = child
                continue
        node = get_next_node(node)


def clean_classes(article_content: Tag, preserve: Iterable[str]) -> None:
    """Remove every class not in *preserve*; empty ``class`` attributes go too."""
    keep = frozenset(preserve)
    for element in [article_content, *article_content.find_all(True)]:
        kept = [name for name in class_name(element).split() if name in keep]
        if kept:
            element["class"] = kept
        elif element.has_attr("class"):
            del element["class"]


def postprocess_content(
    article_content: Tag,
    soup: BeautifulSoup,
    base: str,
    document_uri: str,
    *,
    keep_classes: bool,
    classes_to_preserve: Iterable[str],
) -> None:
    fix_relative_uris(article_content, soup, base, document_uri)
    simplify_nested_elements(article_content)
    if not keep_classes:
        clean_classes(article_content, classes_to_preserve)
    logger.debug("Post-processed article content")
