"""Document preparation run once before metadata and content extraction.

All functions mutate the tree in place and return nothing.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Comment, Tag

from .dom import (
    attribute_items,
    class_name,
    first_element_child,
    get_attr,
    is_element,
    is_phrasing_content,
    is_single_image,
    is_whitespace,
    next_node,
    previous_element_sibling,
    remove_nodes,
    set_node_tag,
)

logger = logging.getLogger(__name__)

_IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|webp)", re.IGNORECASE)
_B64_DATA_URL_RE = re.compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.IGNORECASE)
_SRCSET_CANDIDATE_RE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d")
_SRC_CANDIDATE_RE = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$")

# Inline placeholders with a base64 payload shorter than this are dropped
_MAX_PLACEHOLDER_B64_LENGTH = 133

_IMAGE_SOURCE_ATTRS = ("src", "srcset", "data-src", "data-srcset")


def _is_br(node: object) -> bool:
    return is_element(node) and node.name == "br"  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Scripts, comments, noscript fallbacks
# ---------------------------------------------------------------------------

def unwrap_noscript_images(soup: BeautifulSoup) -> None:
    """Swap lazy-load placeholder images for the real image in their <noscript>."""
    remove_nodes(
        soup.find_all("img"),
        lambda img: not any(img.has_attr(name) for name in _IMAGE_SOURCE_ATTRS),
    )

    for noscript in soup.find_all("noscript"):
        if noscript.parent is None:
            continue
        if all(isinstance(child, str) for child in noscript.contents):
            markup = noscript.get_text()
        else:
            markup = noscript.decode_contents()
        fragment = BeautifulSoup(markup, "lxml").body
        if fragment is None or not is_single_image(fragment):
            continue

        previous = previous_element_sibling(noscript)
        if previous is None or not is_single_image(previous):
            continue

        previous_img = previous if previous.name == "img" else previous.find("img")
        new_img = fragment.find("img")
        if not isinstance(previous_img, Tag) or not isinstance(new_img, Tag):
            continue

        for name, value in attribute_items(previous_img):
            if value == "":
                continue
            if name in ("src", "srcset") or _IMAGE_EXT_RE.search(value):
                if get_attr(new_img, name) == value:
                    continue
                target = f"data-old-{name}" if new_img.has_attr(name) else name
                new_img[target] = value

        replacement = first_element_child(fragment)
        if replacement is None:
            continue
        previous.replace_with(replacement)
        noscript.extract()
        logger.debug("Unwrapped noscript image %s", get_attr(new_img, "src"))


def remove_scripts(soup: BeautifulSoup) -> None:
    remove_nodes(soup.find_all(["script", "noscript"]))
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()


# ---------------------------------------------------------------------------
# <br> runs and <font>
# ---------------------------------------------------------------------------

def replace_brs(element: Tag, soup: BeautifulSoup) -> None:
    """Turn ``<br><br>``-separated text into ``<p>`` blocks.

    ``<div>foo<br>bar<br> <br><br>abc</div>`` becomes
    ``<div>foo<br>bar<p>abc</p></div>``.
    """
    for br in element.find_all("br"):
        following = br.next_sibling

        # Drop every <br> after the first; whitespace between them is kept.
        replaced = False
        following = next_node(following)
        while _is_br(following):
            replaced = True
            br_sibling = following.next_sibling  # type: ignore[union-attr]
            following.extract()  # type: ignore[union-attr]
            following = next_node(br_sibling)

        if not replaced:
            continue

        paragraph = soup.new_tag("p")
        br.replace_with(paragraph)

        following = paragraph.next_sibling
        while following is not None:
            # A second <br><br> ends the paragraph
            if _is_br(following):
                next_elem = next_node(following.next_sibling)
                if _is_br(next_elem):
                    break

            if not is_phrasing_content(following):
                break

            sibling = following.next_sibling
            paragraph.append(following)
            following = sibling

        while paragraph.contents and is_whitespace(paragraph.contents[-1]):
            paragraph.contents[-1].extract()

        if paragraph.parent is not None and paragraph.parent.name == "p":
            set_node_tag(paragraph.parent, "div")


def prep_document(soup: BeautifulSoup) -> None:
    remove_nodes(soup.find_all("style"))

    if soup.body is not None:
        replace_brs(soup.body, soup)

    for font in soup.find_all("font"):
        set_node_tag(font, "span")


# ---------------------------------------------------------------------------
# Lazy images
# ---------------------------------------------------------------------------

def fix_lazy_images(root: Tag, soup: BeautifulSoup) -> None:
    """Promote lazy-load attributes (``data-src`` and friends) to src/srcset."""
    for elem in root.find_all(["img", "picture", "figure"]):
        is_img = elem.name == "img"
        src = get_attr(elem, "src") if is_img else None

        if src:
            match = _B64_DATA_URL_RE.match(src)
            if match:
                # SVG placeholders can be meaningful images
                if match.group(1) == "image/svg+xml":
                    continue

                src_could_be_removed = any(
                    name != "src" and _IMAGE_EXT_RE.search(value)
                    for name, value in attribute_items(elem)
                )
                if src_could_be_removed:
                    b64_starts = src.lower().find("base64") + 7
                    if len(src) - b64_starts < _MAX_PLACEHOLDER_B64_LENGTH:
                        del elem["src"]
                        src = None

        srcset = get_attr(elem, "srcset") if is_img else None
        if (src or (srcset and srcset != "null")) and "lazy" not in class_name(elem).lower():
            continue

        for name, value in attribute_items(elem):
            if name in ("src", "srcset", "alt"):
                continue
            copy_to = None
            if _SRCSET_CANDIDATE_RE.search(value):
                copy_to = "srcset"
            elif _SRC_CANDIDATE_RE.search(value):
                copy_to = "src"
            if copy_to is None:
                continue

            if elem.name in ("img", "picture"):
                elem[copy_to] = value
            elif elem.name == "figure" and not elem.find_all(["img", "picture"]):
                img = soup.new_tag("img")
                img[copy_to] = value
                elem.append(img)
