"""Tests for the sanitizer passes and the sanitize stage."""

import json
import os

import pytest
from bs4 import BeautifulSoup

from site_migrator.config import (
    ClassificationConfig,
    DEFAULT_LAYOUT_CLASS_PATTERNS,
    SanitizeConfig,
)
from site_migrator.errors import TransformError, TransformErrorKind
from site_migrator.models import ContentType, RawDocument
from site_migrator.sanitizer import ContentSanitizer, LinkRewriter
from site_migrator.sanitizer.attributes import compile_patterns, strip_attributes
from site_migrator.sanitizer.cleanup import (
    convert_background_images,
    remove_boilerplate,
    remove_empty_elements,
)
from site_migrator.sanitizer.lists import convert_word_lists, is_list_paragraph
from site_migrator.sanitizer.spacing import apply_spacing
from site_migrator.sanitizer.styles import parse_style
from site_migrator.store import CleanStore

from conftest import ARTICLE_ID


PATTERNS = compile_patterns(DEFAULT_LAYOUT_CLASS_PATTERNS)


def fragment(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, 'html.parser')


def raw(html: str, source_id: str = "www.example.com_test-page.html") -> RawDocument:
    return RawDocument(
        source_id=source_id,
        html=html,
        fetched_at="2025-01-01T00:00:00+00:00",
        url="https://www.example.com/test-page",
    )


class TestStripAttributes:
    def test_allow_list(self):
        soup = fragment(
            '<div class="col-md-6 fancy" id="x" data-foo="1" style="color: red">'
            '<p class="lead" onclick="go()">Hello</p>'
            '<img src="/a.png" alt="A" class="wp-image" loading="lazy">'
            '<td colspan="2" bgcolor="red">cell</td>'
            '</div>'
        )
        strip_attributes(soup, SanitizeConfig().attribute_allow_list, PATTERNS)

        div = soup.find('div')
        assert div.attrs == {'class': ['col-md-6'], 'style': 'color: red'}
        assert soup.find('p').attrs == {}
        assert soup.find('img').attrs == {'src': '/a.png', 'alt': 'A'}
        assert soup.find('td').attrs == {'colspan': '2'}

    def test_iframe_embed_attributes_kept(self):
        soup = fragment('<iframe src="https://player.example/1" allowfullscreen class="x"></iframe>')
        strip_attributes(soup, SanitizeConfig().attribute_allow_list, PATTERNS)
        assert set(soup.find('iframe').attrs) == {'src', 'allowfullscreen'}


class TestLinkRewriter:
    @pytest.fixture
    def rewriter(self):
        return LinkRewriter(
            "www.example.com",
            (("old-services", "/services/"), ("old-services-detail", "/services/detail/")),
        )

    def test_longest_pattern_wins(self, rewriter):
        href, external = rewriter.rewrite_href("https://www.example.com/OLD-SERVICES-DETAIL.html")
        assert href == "/services/detail/"
        assert external is False

    def test_internal_absolute_becomes_relative(self, rewriter):
        assert rewriter.rewrite_href("https://example.com/about-us?x=1#team") == ("/about-us?x=1#team", False)

    def test_bare_relative_gets_leading_slash(self, rewriter):
        assert rewriter.rewrite_href("contact.html") == ("/contact.html", False)

    def test_root_relative_untouched(self, rewriter):
        assert rewriter.rewrite_href("/inventory") == ("/inventory", False)

    def test_external(self, rewriter):
        assert rewriter.rewrite_href("https://other.org/page") == ("https://other.org/page", True)

    def test_rewrite_links(self, rewriter):
        soup = fragment(
            '<a href="https://other.org/x">ext</a>'
            '<a href="mailto:sales@example.com">mail</a>'
            '<a href="#top">top</a>'
            '<a href="https://www.example.com/old-services">svc</a>'
        )
        counts = rewriter.rewrite_links(soup)
        assert counts == {'internal': 1, 'external': 1, 'skipped': 2}

        anchors = soup.find_all('a')
        assert anchors[0]['target'] == '_blank'
        assert 'rel="noopener noreferrer"' in str(anchors[0])
        assert anchors[1]['href'] == "mailto:sales@example.com"
        assert anchors[3]['href'] == "/services/"
        assert not anchors[3].has_attr('target')


class TestWordLists:
    def test_three_bullets_become_one_list(self):
        soup = fragment(
            '<p>Intro</p><p>• First</p><p>• Second</p>\n<p>• Third</p><p>Outro</p>'
        )
        assert convert_word_lists(soup, soup) == 1

        lists = soup.find_all('ul')
        assert len(lists) == 1
        assert [li.get_text() for li in lists[0].find_all('li')] == ["First", "Second", "Third"]
        assert [p.get_text() for p in soup.find_all('p')] == ["Intro", "Outro"]

    def test_mso_list_styles_stripped(self):
        soup = fragment(
            '<p style="mso-list: l0 level1 lfo1; margin-left: 36pt; text-indent: -18pt">'
            '<span style="mso-bidi-font-weight: bold; color: red">A</span></p>'
            '<p style="mso-list: l0 level1 lfo1"><span style="white-space: pre">B</span></p>'
        )
        convert_word_lists(soup, soup)
        items = soup.find_all('li')
        assert len(items) == 2
        assert 'mso' not in str(soup)
        assert 'white-space' not in str(soup)
        assert items[0].find('span')['style'] == "color: red"
        assert items[1].find('span').get('style') is None

    def test_separate_runs(self):
        soup = fragment('<p>• A</p><p>• B</p><h2>Break</h2><p>• C</p>')
        assert convert_word_lists(soup, soup) == 2

    def test_paragraphs_inside_items_unwrapped(self):
        soup = fragment('<ul><li><p>One</p></li><li><p>Two</p></li></ul>')
        convert_word_lists(soup, soup)
        assert soup.find('p') is None
        assert [li.get_text() for li in soup.find_all('li')] == ["One", "Two"]

    def test_plain_paragraph_not_a_list(self):
        soup = fragment('<p>Ordinary • text</p>')
        assert is_list_paragraph(soup.find('p')) is False


class TestSpacing:
    def test_margins_replaced(self):
        soup = fragment('<p style="margin-top: 0; color: blue; margin-bottom: 5px">Text</p>')
        apply_spacing(soup, "20pt")
        assert soup.find('p')['style'] == "color: blue; margin-top: 20pt; margin-bottom: 20pt"

    def test_skipped_elements(self):
        soup = fragment(
            '<ul><li><p>Item</p></li></ul>'
            '<p></p>'
            '<div class="table-responsive"><table><tr><td>x</td></tr></table></div>'
            '<div><p>Nested</p></div>'
        )
        apply_spacing(soup, "20pt")

        assert soup.find('li').find('p').get('style') is None
        assert soup.find_all('p')[1].get('style') is None
        assert soup.find('div', class_='table-responsive').get('style') is None
        assert soup.find_all('div')[1].get('style') is None
        assert soup.find('ul')['style'] == "margin-top: 20pt; margin-bottom: 20pt"
        assert soup.find('table')['style'] == "margin-top: 20pt; margin-bottom: 20pt"


class TestCleanup:
    def test_boilerplate_removed(self):
        soup = fragment(
            '<div><!-- tracking --><script>x()</script><nav>menu</nav>'
            '<form><input name="q"></form>'
            '<div class="post-date">March 8, 2023</div>'
            '<div class="sidebar">links</div>'
            '<button type="submit">Go</button>'
            '<p>Body</p></div>'
        )
        remove_boilerplate(soup)
        assert str(soup) == '<div><p>Body</p></div>'

    def test_long_text_under_date_class_kept(self):
        text = "Published content that is clearly longer than a simple date stamp."
        soup = fragment(f'<div class="published">{text}</div>')
        remove_boilerplate(soup)
        assert soup.get_text() == text

    def test_background_images(self):
        soup = fragment(
            '<div style="background-image: url(/img/bg.jpg?w=800)"></div>'
            '<div style="background-image: url(/img/bg.jpg)"></div>'
            '<section style="background: url(\'/img/banner.png\') no-repeat; color: red">'
            '<p>Banner text</p></section>'
        )
        assert convert_background_images(soup, soup) == 2

        sources = [img['src'] for img in soup.find_all('img')]
        assert sorted(sources) == ["/img/banner.png", "/img/bg.jpg"]
        section = soup.find('section')
        assert section['style'] == "color: red"
        assert section.contents[0].name == 'img'
        assert section.find('p').get_text() == "Banner text"

    def test_nested_responsive_background_wrappers(self):
        soup = fragment(
            '<div id="outer" style="background-image:url(a.jpg?w=800)">'
            '<div style="background-image:url(a.jpg)"></div></div>'
        )
        assert convert_background_images(soup, soup) == 1

        assert [img['src'] for img in soup.find_all('img')] == ["a.jpg"]
        outer = soup.find(id="outer")
        assert outer.find('img') is not None
        assert not outer.has_attr('style')

    def test_nested_distinct_backgrounds(self):
        soup = fragment(
            '<div style="background-image:url(outer.jpg)">'
            '<div style="background-image:url(inner.jpg)"></div></div>'
        )
        assert convert_background_images(soup, soup) == 2
        assert [img['src'] for img in soup.find_all('img')] == ["outer.jpg", "inner.jpg"]

    def test_empty_elements(self):
        soup = fragment(
            '<div><span></span><p>&nbsp;</p><p>Text</p>'
            '<div class="row"></div><p><img src="a.png"></p>'
            '<strong><em></em></strong></div>'
        )
        remove_empty_elements(soup, PATTERNS)

        assert soup.find('span') is None
        assert soup.find('strong') is None
        assert [p.get_text() for p in soup.find_all('p')] == ["Text", ""]
        assert soup.find('div', class_='row') is not None
        assert soup.find('img') is not None

    def test_nested_wrappers_unwrapped(self):
        soup = fragment('<div><div><p>Text</p></div></div>')
        remove_empty_elements(soup, PATTERNS)
        assert str(soup) == '<div><p>Text</p></div>'


class TestContentSanitizer:
    def test_article(self, article_doc):
        sanitizer = ContentSanitizer(SanitizeConfig())
        clean = sanitizer.sanitize(article_doc)
        soup = fragment(clean.html)

        assert clean.source_id == ARTICLE_ID
        assert soup.find('h1') is None
        assert soup.find('script') is None
        assert soup.find(class_='post-date') is None
        assert 'Copyright' not in clean.html
        assert '/logo.png' not in clean.html

        items = [li.get_text() for li in soup.find_all('li')]
        assert items == ["Ford F-150", "Ram 1500", "Toyota Tundra"]

        lead = soup.find('p')
        assert lead.get('class') is None
        assert dict(parse_style(lead['style'])) == {
            'color': '#333', 'margin-top': '20pt', 'margin-bottom': '20pt'
        }

        links = {a.get_text(): a for a in soup.find_all('a')}
        assert links['inventory']['href'] == "/inventory/trucks.html"
        assert links['reviews']['target'] == '_blank'

        hero = soup.find('img', src="/img/hero.png")
        assert hero is not None
        assert hero.get('class') is None

    def test_classification_uses_raw_markup(self, article_doc):
        sanitizer = ContentSanitizer(SanitizeConfig(), ClassificationConfig(post_selector="blog-post"))
        clean = sanitizer.sanitize(article_doc)
        assert clean.verdict.type == ContentType.POST
        assert clean.verdict.confidence == 95
        assert 'blog-post' not in clean.html

    def test_removal_selectors(self):
        doc = raw('<html><body><main><p>Keep</p><div class="share-buttons">Share</div></main></body></html>')
        clean = ContentSanitizer(SanitizeConfig(removal_selectors=(".share-buttons",))).sanitize(doc)
        assert 'Share' not in clean.html
        assert 'Keep' in clean.html

    def test_remove_images(self, article_doc):
        clean = ContentSanitizer(SanitizeConfig(remove_images=True)).sanitize(article_doc)
        assert '<img' not in clean.html

    def test_keep_headings(self, article_doc):
        clean = ContentSanitizer(SanitizeConfig(remove_headings=False)).sanitize(article_doc)
        assert '<h1' in clean.html

    def test_content_root_falls_back_to_body(self):
        doc = raw('<html><body><p>Only body text</p></body></html>')
        clean = ContentSanitizer(SanitizeConfig()).sanitize(doc)
        assert 'Only body text' in clean.html
        assert '<body' not in clean.html

    def test_empty_document(self):
        with pytest.raises(TransformError) as exc_info:
            ContentSanitizer(SanitizeConfig()).sanitize(raw("   "))
        assert exc_info.value.kind == TransformErrorKind.PARSE_FAILURE

    def test_sanitize_all_records_failures(self, tmp_path, article_doc, sink):
        store = CleanStore(str(tmp_path / "clean"))
        sanitizer = ContentSanitizer(SanitizeConfig(), store=store, sink=sink)

        cleaned, summary = sanitizer.sanitize_all([article_doc, raw("")])

        assert len(cleaned) == 1
        assert summary.succeeded == 1
        assert summary.failed == 1
        assert summary.errors[0]['type'] == "parse_failure"

        assert os.path.exists(store.path_for(ARTICLE_ID))
        with open(store.index_path, encoding='utf-8') as f:
            assert json.load(f)[ARTICLE_ID]['type'] == "post"
        assert os.path.exists(os.path.join(store.directory, "errors.json"))

        reloaded = CleanStore(store.directory).load_all()
        assert reloaded == cleaned

    def test_sanitize_all_survives_nested_backgrounds(self, article_doc):
        nested = raw(
            '<html><body><div style="background-image:url(a.jpg?w=800)">'
            '<div style="background-image:url(a.jpg)"></div></div></body></html>',
            source_id="www.example.com_hero.html",
        )
        cleaned, summary = ContentSanitizer(SanitizeConfig()).sanitize_all([nested, article_doc])

        assert [c.source_id for c in cleaned] == ["www.example.com_hero.html", ARTICLE_ID]
        assert summary.failed == 0
        assert 'src="a.jpg"' in cleaned[0].html

    def test_unexpected_error_stays_with_its_document(self, article_doc, sink):
        class BrokenSanitizer(ContentSanitizer):
            def sanitize(self, document):
                if document.source_id == "www.example.com_broken.html":
                    raise AttributeError("'NoneType' object has no attribute 'get'")
                return super().sanitize(document)

        broken = raw("<p>Broken</p>", source_id="www.example.com_broken.html")
        cleaned, summary = BrokenSanitizer(SanitizeConfig(), sink=sink).sanitize_all([broken, article_doc])

        assert [c.source_id for c in cleaned] == [ARTICLE_ID]
        assert summary.failed == 1
        assert summary.errors[0]['id'] == "www.example.com_broken.html"
        assert summary.errors[0]['type'] == "parse_failure"
        assert any("broken" in m for m in sink.messages("error"))
