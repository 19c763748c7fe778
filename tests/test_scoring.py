"""Unit tests for candidate scoring."""

from __future__ import annotations

import pytest

from readr.extractors.dom import match_string
from readr.extractors.scoring import (
    check_byline,
    class_weight,
    collect_elements_to_score,
    initialize_node,
    score_elements,
)
from readr.settings import Strictness

_PARAGRAPH = (
    "Scoring favours long paragraphs, with commas, that sit together inside a "
    "single container rather than scattered around the page."
)


class TestClassWeight:
    @pytest.mark.parametrize(
        ("attrs", "weight"),
        [
            ('class="article-body"', 25),
            ('class="comment"', -25),
            ('class="article-body" id="sidebar"', 0),
            ('class="post" id="main-content"', 50),
            ("", 0),
        ],
    )
    def test_weights(self, make_soup, make_state, attrs, weight):
        soup = make_soup(f"<div {attrs}>x</div>")
        assert class_weight(soup.div, make_state(soup)) == weight

    def test_disabled_without_flag(self, make_soup, make_state):
        soup = make_soup('<div class="comment">x</div>')
        state = make_state(soup, Strictness.STRIP_UNLIKELYS | Strictness.CLEAN_CONDITIONALLY)
        assert class_weight(soup.div, state) == 0

    @pytest.mark.parametrize(
        ("tag", "seed"),
        [("div", 5), ("blockquote", 3), ("td", 3), ("ul", -3), ("form", -3), ("h2", -5), ("th", -5), ("span", 0)],
    )
    def test_initialize_node_seed(self, make_soup, make_state, tag, seed):
        soup = make_soup("<body></body>")
        node = soup.new_tag(tag)
        soup.body.append(node)
        state = make_state(soup)
        initialize_node(node, state)
        assert state.scores[node] == seed


class TestByline:
    def test_class_byline_captured_once(self, make_soup, make_state):
        soup = make_soup('<p class="byline">By Sam Reporter</p><p class="author">Other Person</p>')
        first, second = soup.find_all("p")
        state = make_state(soup)
        assert check_byline(first, match_string(first), state)
        assert state.byline == "By Sam Reporter"
        assert not check_byline(second, match_string(second), state)

    def test_rel_author(self, make_soup, make_state):
        soup = make_soup('<a rel="author" href="/u/1"> Jo Writer </a>')
        state = make_state(soup)
        assert check_byline(soup.a, match_string(soup.a), state)
        assert state.byline == "Jo Writer"

    def test_itemprop_author(self, make_soup, make_state):
        soup = make_soup('<span itemprop="author creator">Lee</span>')
        state = make_state(soup)
        assert check_byline(soup.span, match_string(soup.span), state)

    def test_too_long_rejected(self, make_soup, make_state):
        soup = make_soup(f'<div class="author-bio">{"word " * 40}</div>')
        state = make_state(soup)
        assert not check_byline(soup.div, match_string(soup.div), state)
        assert state.byline is None


class TestCollectElements:
    def test_removes_hidden_modal_and_unlikely(self, make_soup, make_state):
        soup = make_soup(
            "<body>"
            f'<div style="display:none"><p>{_PARAGRAPH}</p></div>'
            f'<div role="dialog" aria-modal="true"><p>{_PARAGRAPH}</p></div>'
            f'<div class="sidebar"><p>{_PARAGRAPH}</p></div>'
            '<ul role="navigation"><li><a href="/">Home</a></li></ul>'
            f'<div class="sidebar-content"><p id="kept">{_PARAGRAPH}</p><p>{_PARAGRAPH}</p></div>'
            "</body>",
        )
        elements = collect_elements_to_score(soup.body, make_state(soup))

        assert soup.find(style="display:none") is None
        assert soup.find(role="dialog") is None
        assert soup.find(class_="sidebar") is None
        assert soup.find("ul") is None
        assert soup.find(class_="sidebar-content") is not None
        assert any(el is soup.find(id="kept") for el in elements)

    def test_unlikely_kept_when_relaxed(self, make_soup, make_state):
        soup = make_soup(f'<body><div class="sidebar"><p>{_PARAGRAPH}</p><p>{_PARAGRAPH}</p></div></body>')
        collect_elements_to_score(soup.body, make_state(soup, Strictness.WEIGHT_CLASSES))
        assert soup.find(class_="sidebar") is not None

    def test_empty_wrappers_removed(self, make_soup, make_state):
        soup = make_soup("<body><div> <br> </div><section></section><h3> </h3><p>x</p></body>")
        collect_elements_to_score(soup.body, make_state(soup))
        assert soup.find("div") is None
        assert soup.find("section") is None
        assert soup.find("h3") is None

    def test_phrasing_div_becomes_paragraph(self, make_soup, make_state):
        soup = make_soup('<body><div id="d">Just some <em>inline</em> text</div></body>')
        elements = collect_elements_to_score(soup.body, make_state(soup))
        assert soup.find("div") is None
        paragraph = soup.body.find("p")
        assert paragraph.get_text() == "Just some inline text"
        assert any(el is paragraph for el in elements)

    def test_div_without_blocks_retagged(self, make_soup, make_state):
        soup = make_soup('<body><div id="d"><h2>A heading only</h2></div></body>')
        elements = collect_elements_to_score(soup.body, make_state(soup))
        node = soup.find(id="d")
        assert node.name == "p"
        assert any(el is node for el in elements)

    def test_single_paragraph_div_unwrapped(self, make_soup, make_state):
        soup = make_soup('<body><div id="outer"> <p id="inner">text</p> </div></body>')
        elements = collect_elements_to_score(soup.body, make_state(soup))
        assert soup.find(id="outer") is None
        inner = soup.find(id="inner")
        assert inner.parent is soup.body
        assert any(el is inner for el in elements)

    def test_phrasing_runs_wrapped(self, make_soup, make_state):
        soup = make_soup('<body><div id="d">Lead text <b>bold</b><p>para</p>trailing words</div></body>')
        collect_elements_to_score(soup.body, make_state(soup))
        div = soup.find(id="d")
        assert div.name == "div"
        paragraphs = div.find_all("p", recursive=False)
        assert [p.get_text() for p in paragraphs] == ["Lead text bold", "para", "trailing words"]

    def test_byline_node_removed_and_recorded(self, make_soup, make_state):
        soup = make_soup('<body><div class="dateline">By Kim Lee</div><p>text</p></body>')
        state = make_state(soup)
        collect_elements_to_score(soup.body, state)
        assert state.byline == "By Kim Lee"
        assert soup.find(class_="dateline") is None


class TestScoreElements:
    def test_score_spreads_to_ancestors(self, make_soup, make_state):
        text = "Alpha, beta, " + "x" * 107
        soup = make_soup(f"<body><article><p>{text}</p></article></body>")
        state = make_state(soup)
        candidates = score_elements([soup.p], state)

        article, body = soup.article, soup.body
        assert candidates == [article, body]
        # 1 base + 3 comma chunks + 1 per hundred characters
        assert state.scores[article] == pytest.approx(5.0)
        assert state.scores[body] == pytest.approx(2.5)
        assert soup.html not in state.scores

    def test_short_text_ignored(self, make_soup, make_state):
        soup = make_soup("<body><div><p>too short</p></div></body>")
        state = make_state(soup)
        assert score_elements([soup.p], state) == []
        assert len(state.scores) == 0

    def test_class_weight_seeds_candidate(self, make_soup, make_state):
        soup = make_soup(f'<body><div class="entry"><p>{_PARAGRAPH}</p></div></body>')
        state = make_state(soup)
        score_elements([soup.p], state)
        # div seed 5, positive class 25, plus the paragraph's own score
        assert state.scores[soup.div] > 30
