"""Unit tests for the tree utilities."""

from __future__ import annotations

import pytest

from readr.extractors.dom import (
    NodeTable,
    TagCategory,
    categories_for,
    char_count,
    get_next_node,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside_element,
    inner_text,
    is_element_without_content,
    is_phrasing_content,
    is_probably_visible,
    link_density,
    remove_and_get_next,
    set_node_tag,
    tags_in,
)


# ---------------------------------------------------------------------------
# Link density
# ---------------------------------------------------------------------------

class TestLinkDensity:
    def test_fragment_links_are_discounted(self, make_soup):
        html = (
            "<p>" + "c" * 70
            + '<a href="#frag">' + "a" * 10 + "</a>"
            + '<a href="/page">' + "b" * 20 + "</a></p>"
        )
        p = make_soup(html).p
        assert len(inner_text(p)) == 100
        assert link_density(p) == pytest.approx(0.23)

    def test_no_text_is_zero(self, make_soup):
        div = make_soup("<div><a href='/x'></a></div>").div
        assert link_density(div) == 0.0

    def test_all_link_text(self, make_soup):
        p = make_soup('<p><a href="/x">every word is a link</a></p>').p
        assert link_density(p) == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Text measures
# ---------------------------------------------------------------------------

class TestTextMeasures:
    def test_inner_text_collapses_whitespace_runs(self, make_soup):
        p = make_soup("<p>  one   two\n\n three  </p>").p
        assert inner_text(p) == "one two three"
        assert inner_text(p, normalize_spaces=False) == "one   two\n\n three"

    def test_char_count(self, make_soup):
        p = make_soup("<p>a, b, c, d</p>").p
        assert char_count(p) == 3
        assert char_count(p, ";") == 0


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

class TestCategories:
    def test_tag_in_several_categories(self):
        found = categories_for("img")
        assert found & TagCategory.PHRASING
        assert found & TagCategory.BLOCK
        assert found & TagCategory.MEDIA
        assert not found & TagCategory.HEADING

    def test_unknown_tag_has_no_category(self):
        assert categories_for("blink") == TagCategory.NONE

    def test_tags_in(self):
        assert tags_in(TagCategory.EMBED) == ["object", "embed", "iframe"]
        assert "nav" in tags_in(TagCategory.SECTIONING)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

class TestTraversal:
    HTML = (
        '<div id="r"><p id="a"><span id="b"></span></p>'
        '<p id="c"></p></div>'
    )

    def test_pre_order(self, make_soup):
        soup = make_soup(self.HTML)
        node = soup.find(id="r")
        seen = []
        node = get_next_node(node)
        while node is not None:
            seen.append(node["id"])
            node = get_next_node(node)
        assert seen == ["a", "b", "c"]

    def test_skip_children(self, make_soup):
        soup = make_soup(self.HTML)
        assert get_next_node(soup.find(id="a"), ignore_self_and_kids=True)["id"] == "c"

    def test_remove_and_get_next(self, make_soup):
        soup = make_soup(self.HTML)
        a = soup.find(id="a")
        following = remove_and_get_next(a)
        assert following["id"] == "c"
        assert a.parent is None
        assert soup.find(id="b") is None

    def test_has_ancestor_tag_depth(self, make_soup):
        soup = make_soup("<table><tr><td><div><span><em>x</em></span></div></td></tr></table>")
        em = soup.em
        assert not has_ancestor_tag(em, "table")
        assert has_ancestor_tag(em, "table", max_depth=-1)
        assert has_ancestor_tag(em, "div")

    def test_has_ancestor_tag_predicate(self, make_soup):
        soup = make_soup('<div class="x"><p>text</p></div>')
        assert has_ancestor_tag(soup.p, "div", predicate=lambda d: d.get("class") == ["x"])
        assert not has_ancestor_tag(soup.p, "div", predicate=lambda d: False)


# ---------------------------------------------------------------------------
# Structural predicates
# ---------------------------------------------------------------------------

class TestPredicates:
    def test_single_tag_inside(self, make_soup):
        assert has_single_tag_inside_element(make_soup("<div> <p>x</p> </div>").div, "p")
        assert not has_single_tag_inside_element(make_soup("<div>text<p>x</p></div>").div, "p")
        assert not has_single_tag_inside_element(make_soup("<div><p>x</p><p>y</p></div>").div, "p")

    def test_phrasing_content(self, make_soup):
        soup = make_soup("<div><a><span>x</span></a><a><div>y</div></a></div>")
        first, second = soup.find_all("a")
        assert is_phrasing_content(first)
        assert not is_phrasing_content(second)

    def test_child_block_element(self, make_soup):
        assert has_child_block_element(make_soup("<div><span><p>x</p></span></div>").div)
        assert not has_child_block_element(make_soup("<div><span>x</span><b>y</b></div>").div)

    def test_element_without_content(self, make_soup):
        assert is_element_without_content(make_soup("<div> <br><hr> </div>").div)
        assert not is_element_without_content(make_soup("<div><br>text</div>").div)
        assert not is_element_without_content(make_soup("<div><img src='a.png'></div>").div)

    @pytest.mark.parametrize(
        ("html", "visible"),
        [
            ('<div style="display: none">x</div>', False),
            ("<div hidden>x</div>", False),
            ('<div aria-hidden="true">x</div>', False),
            ('<div aria-hidden="true" class="fallback-image">x</div>', True),
            ('<div style="color: red">x</div>', True),
        ],
    )
    def test_probably_visible(self, make_soup, html, visible):
        assert is_probably_visible(make_soup(html).div) is visible


# ---------------------------------------------------------------------------
# Identity and mutation
# ---------------------------------------------------------------------------

class TestNodeIdentity:
    def test_node_table_uses_identity(self, make_soup):
        soup = make_soup("<p>same</p><p>same</p>")
        first, second = soup.find_all("p")
        assert first == second  # bs4 compares markup

        table: NodeTable[float] = NodeTable()
        table[first] = 1.0
        assert first in table
        assert second not in table
        assert table.get(second) is None
        assert table.nodes() == [first]

    def test_set_node_tag_keeps_identity(self, make_soup):
        soup = make_soup('<div id="x" class="y">text <b>bold</b></div>')
        div = soup.div
        result = set_node_tag(div, "p")
        assert result is div
        assert div.name == "p"
        assert div["id"] == "x"
        assert div.b is not None
