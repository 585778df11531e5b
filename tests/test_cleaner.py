"""Tests for boilerplate removal and text flattening."""

from __future__ import annotations

from bs4 import BeautifulSoup

from pagetext.extractors.cleaner import (
    clean_content,
    cleaned_text_length,
    flatten_text,
    is_boilerplate,
    is_wikipedia_page,
    prune_empty,
)
from pagetext.settings import ExtractionConfig


def _root(html: str, selector: str = "#root"):
    return BeautifulSoup(html, "lxml").select_one(selector)


# ---------------------------------------------------------------------------
# Boilerplate detection
# ---------------------------------------------------------------------------

class TestIsBoilerplate:
    def test_removal_tags(self):
        soup = BeautifulSoup("<nav>n</nav><script>s</script><p>p</p>", "lxml")
        cfg = ExtractionConfig()
        assert is_boilerplate(soup.nav, cfg)
        assert is_boilerplate(soup.script, cfg)
        assert not is_boilerplate(soup.p, cfg)

    def test_class_and_id_tokens_case_insensitive(self):
        soup = BeautifulSoup(
            '<div class="Social-Links">a</div><div id="COMMENTS">b</div>', "lxml",
        )
        divs = soup.find_all("div")
        cfg = ExtractionConfig()
        assert is_boilerplate(divs[0], cfg)
        assert is_boilerplate(divs[1], cfg)

    def test_keep_tags_override(self):
        soup = BeautifulSoup('<iframe src="https://v.example/1"></iframe>', "lxml")
        assert is_boilerplate(soup.iframe, ExtractionConfig())
        assert not is_boilerplate(soup.iframe, ExtractionConfig(keep_tags=["IFRAME"]))

    def test_hidden_elements(self):
        soup = BeautifulSoup(
            '<div hidden>a</div><p style="display: none">b</p><span>c</span>', "lxml",
        )
        cfg = ExtractionConfig()
        assert is_boilerplate(soup.div, cfg)
        assert is_boilerplate(soup.p, cfg)
        assert not is_boilerplate(soup.span, cfg)

    def test_body_exempt_from_class_rule(self):
        soup = BeautifulSoup('<body class="single comments-open"><p>x</p></body>', "lxml")
        assert not is_boilerplate(soup.body, ExtractionConfig())

    def test_taxonomy_classes_ignored(self):
        soup = BeautifulSoup(
            '<article class="post-1 post type-post category-social-media tag-comments">'
            "<p>x</p></article>",
            "lxml",
        )
        assert not is_boilerplate(soup.article, ExtractionConfig())


# ---------------------------------------------------------------------------
# Tree building
# ---------------------------------------------------------------------------

class TestCleanContent:
    def test_drops_boilerplate_subtrees(self, article_soup):
        cleaned = clean_content(article_soup.article)
        text = flatten_text(cleaned)
        assert "Share on Twitter" not in text
        assert "Great article" not in text
        assert "tracking" not in text
        assert "Almost every old city" in text

    def test_source_tree_untouched(self, article_soup):
        before = str(article_soup)
        clean_content(article_soup.article, ExtractionConfig(include_links=False))
        assert str(article_soup) == before

    def test_result_is_detached_copy(self, article_soup):
        cleaned = clean_content(article_soup.article)
        assert cleaned is not article_soup.article
        assert cleaned.parent is None
        cleaned.clear()
        assert article_soup.article.find("p") is not None

    def test_root_kept_despite_boilerplate_class(self):
        root = _root('<div id="root" class="comment-thread"><p>Kept text</p></div>')
        cleaned = clean_content(root)
        assert cleaned.name == "div"
        assert flatten_text(cleaned) == "Kept text"

    def test_links_unwrapped_when_excluded(self):
        root = _root('<div id="root"><p>See <a href="/x">this page</a> now</p></div>')
        cleaned = clean_content(root, ExtractionConfig(include_links=False))
        assert cleaned.find("a") is None
        assert flatten_text(cleaned) == "See this page now"

    def test_links_kept_and_resolved(self):
        root = _root('<div id="root"><p><a href="../about">About</a></p></div>')
        cleaned = clean_content(root, base_url="https://example.com/news/story")
        assert cleaned.find("a")["href"] == "https://example.com/about"

    def test_images_replaced_by_alt(self):
        root = _root('<div id="root"><p>Before</p><img src="a.png" alt="A chart"></div>')
        cleaned = clean_content(root)
        assert cleaned.find("img") is None
        assert "A chart" in flatten_text(cleaned)

    def test_images_kept_when_included(self):
        root = _root('<div id="root"><p>Before</p><img src="a.png" alt=""></div>')
        cleaned = clean_content(
            root, ExtractionConfig(include_images=True), base_url="https://example.com/",
        )
        img = cleaned.find("img")
        assert img is not None
        assert img["src"] == "https://example.com/a.png"

    def test_tables_dropped_when_excluded(self, news_soup):
        root = news_soup.select_one(".story-body")
        assert clean_content(root).find("table") is not None
        assert clean_content(root, ExtractionConfig(include_tables=False)).find("table") is None

    def test_comments_and_doctype_dropped(self):
        root = _root('<div id="root"><!-- tracking pixel --><p>Text</p></div>')
        cleaned = clean_content(root)
        assert "tracking" not in str(cleaned)

    def test_keep_tags_preserves_iframe(self):
        root = _root(
            '<div id="root"><p>Watch</p><iframe src="https://v.example/1"></iframe></div>',
        )
        assert clean_content(root).find("iframe") is None
        cleaned = clean_content(root, ExtractionConfig(keep_tags=["iframe"]))
        assert cleaned.find("iframe") is not None

    def test_nav_script_and_comments_inside_root_dropped(self):
        root = _root(
            '<div id="root"><nav><a href="/">Home</a> Archive</nav>'
            "<p>Body text stays.</p><script>track('view')</script>"
            '<div class="comments"><p>First!</p></div></div>',
        )
        assert flatten_text(clean_content(root)) == "Body text stays."

    def test_deeply_nested_markup(self, prose):
        nested = "<div>" * 600 + f"<p>{prose(80)}</p>" + "</div>" * 600
        root = BeautifulSoup(f'<div id="root">{nested}</div>', "lxml").find(id="root")
        cleaned = clean_content(root)
        assert len(cleaned.find_all("div")) == 600
        assert flatten_text(cleaned) == prose(80)


class TestPruneEmpty:
    def test_repeats_until_nothing_removed(self):
        root = _root('<div id="root"><div><span> </span></div><p>text</p></div>')
        passes = prune_empty(root)
        assert passes == 2
        assert root.find("span") is None
        assert [t.name for t in root.find_all(True)] == ["p"]

    def test_void_elements_survive(self):
        root = _root('<div id="root"><p>a<br>b</p><hr><img src="x.png"></div>')
        prune_empty(root)
        assert root.find("br") is not None
        assert root.find("hr") is not None
        assert root.find("img") is not None

    def test_no_empty_leaves_means_zero_passes(self):
        root = _root('<div id="root"><p>text</p></div>')
        assert prune_empty(root) == 0


# ---------------------------------------------------------------------------
# Text flattening
# ---------------------------------------------------------------------------

class TestFlattenText:
    def test_blocks_become_paragraphs(self):
        root = _root(
            '<div id="root"><p>One</p><p>Two   words</p>Some <b>bold</b> text<br>next</div>',
        )
        assert flatten_text(root) == "One\n\nTwo words\n\nSome bold text\nnext"

    def test_image_alt_text(self):
        root = _root('<div id="root"><p>See <img src="c.png" alt="chart"> here</p></div>')
        assert flatten_text(root) == "See chart here"

    def test_invisible_tags_skipped(self):
        root = _root('<div id="root"><p>Visible</p><script>hidden()</script></div>')
        assert flatten_text(root) == "Visible"

    def test_blank_line_runs_collapsed(self):
        root = _root('<div id="root"><div><div><p>A</p></div></div><ul><li>B</li></ul></div>')
        assert flatten_text(root) == "A\n\nB"

    def test_cleaned_text_length_matches_flattened_copy(self, article_soup):
        root = article_soup.article
        assert cleaned_text_length(root) == len(flatten_text(clean_content(root)))

    def test_pre_keeps_line_breaks(self):
        root = _root(
            '<div id="root"><p>Run   this:</p>'
            "<pre><code>def f():\n    return 1\n</code></pre><p>Done.</p></div>",
        )
        assert flatten_text(root) == "Run this:\n\ndef f():\n    return 1\n\nDone."

    def test_deeply_nested_text(self):
        nested = "<span>" * 600 + "deep" + "</span>" * 600
        root = BeautifulSoup(f'<div id="root"><p>{nested}</p></div>', "lxml").find(id="root")
        assert flatten_text(root) == "deep"


# ---------------------------------------------------------------------------
# Reference sections
# ---------------------------------------------------------------------------

SECTIONED = (
    '<div id="root"><p>Intro text.</p>'
    "<h2>History</h2><p>Old days.</p>"
    "<h2>See also</h2><ul><li>Other page</li></ul>"
    "<h3>Related lists</h3><p>Still part of see also.</p>"
    '<h2>References</h2><div class="reflist"><p>Reference 1</p></div>'
    "<h2>Legacy</h2><p>Back in the article.</p></div>"
)


class TestReferenceSections:
    def test_kept_by_default(self):
        text = flatten_text(clean_content(_root(SECTIONED)))
        assert "Reference 1" in text
        assert "Other page" in text

    def test_dropped_up_to_next_same_level_heading(self):
        cfg = ExtractionConfig(skip_reference_sections=True)
        text = flatten_text(clean_content(_root(SECTIONED), cfg))
        assert text == (
            "Intro text.\n\nHistory\n\nOld days.\n\nLegacy\n\nBack in the article."
        )

    def test_mediawiki_heading_wrapper(self):
        root = _root(
            '<div id="root"><p>Body.</p>'
            '<div class="mw-heading mw-heading2"><h2 id="References">References</h2>'
            '<span class="mw-editsection">[edit]</span></div>'
            '<div class="reflist"><p>Ref A</p></div></div>',
        )
        cfg = ExtractionConfig(skip_reference_sections=True)
        assert flatten_text(clean_content(root, cfg)) == "Body."

    def test_source_tree_untouched(self):
        root = _root(SECTIONED)
        before = str(root)
        clean_content(root, ExtractionConfig(skip_reference_sections=True))
        assert str(root) == before


class TestIsWikipediaPage:
    def test_og_site_name(self):
        soup = BeautifulSoup(
            '<html><head><meta property="og:site_name" content="Wikipedia"></head></html>', "lxml",
        )
        assert is_wikipedia_page(soup)

    def test_canonical_link(self):
        soup = BeautifulSoup(
            '<html><head><link rel="canonical" href="https://en.wikipedia.org/wiki/River">'
            "</head></html>",
            "lxml",
        )
        assert is_wikipedia_page(soup)

    def test_other_site(self):
        soup = BeautifulSoup(
            '<html><head><meta property="og:site_name" content="Riverside Gazette"></head></html>',
            "lxml",
        )
        assert not is_wikipedia_page(soup)
