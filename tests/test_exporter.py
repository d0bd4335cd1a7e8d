"""Tests for date/title/excerpt derivation and CSV export."""

import csv
import json
import os
import re

import pytest

from site_migrator.config import ExportConfig
from site_migrator.errors import ExportError, ExportErrorKind
from site_migrator.exporter import CSV_HEADERS, CsvExporter, extract_date, parse_date, write_csv
from site_migrator.exporter.metadata import (
    extract_excerpt,
    extract_title,
    fallback_title,
    parse_fragment,
    rewrite_image_sources,
    truncate_excerpt,
)
from site_migrator.models import (
    ClassificationVerdict,
    CleanDocument,
    ContentType,
    ExportRow,
    ImageRecord,
)
from site_migrator.sanitizer.selectors import parse_html

from conftest import ARTICLE_ID


POST_VERDICT = ClassificationVerdict(ContentType.POST, 95, "Post selector matched")
PAGE_VERDICT = ClassificationVerdict(ContentType.PAGE, 80, "Post selector not found")


class TestParseDate:
    @pytest.mark.parametrize("text,expected", [
        ("March 8, 2023", "2023-03-08 00:00:00"),
        ("Mar 8 2023", "2023-03-08 00:00:00"),
        ("Sept. 14, 2022", "2022-09-14 00:00:00"),
        ("03/08/2023", "2023-03-08 00:00:00"),
        ("8 March 2023", "2023-03-08 00:00:00"),
        ("2nd June, 2021", "2021-06-02 00:00:00"),
        ("2023-03-08", "2023-03-08 00:00:00"),
        ("2025-03-03T09:30:00+00:00", "2025-03-03 09:30:00"),
        ("Posted on January 15th, 2024 by Admin", "2024-01-15 00:00:00"),
    ])
    def test_formats(self, text, expected):
        assert parse_date(text) == expected

    @pytest.mark.parametrize("text", [None, "", "yesterday", "13/45/2023"])
    def test_unparseable(self, text):
        assert parse_date(text) is None


class TestExtractDate:
    def test_meta_attribute_preferred(self):
        soup = parse_html(
            '<html><head><meta property="article:published_time" content="2024-02-01T10:00:00">'
            '</head><body><div class="date">March 8, 2023</div></body></html>'
        )
        assert extract_date(soup) == "2024-02-01 10:00:00"

    def test_time_datetime_attribute(self):
        soup = parse_html('<time datetime="2022-11-05">Nov 5</time>')
        assert extract_date(soup) == "2022-11-05 00:00:00"

    def test_text_fallback(self):
        soup = parse_html('<div class="post-date">Posted March 8, 2023</div>')
        assert extract_date(soup) == "2023-03-08 00:00:00"

    def test_nothing_found(self):
        assert extract_date(parse_html('<p>No dates here</p>')) is None


class TestTitleAndExcerpt:
    def test_raw_h1_first(self):
        raw = parse_html('<html><head><title>Site | Page</title></head><body><h1>Real Title</h1></body></html>')
        assert extract_title("x.com_a.html", raw, parse_fragment("<p>x</p>")) == "Real Title"

    def test_title_tag_when_no_heading(self):
        raw = parse_html('<html><head><title>Only Title</title></head><body></body></html>')
        assert extract_title("x.com_a.html", raw) == "Only Title"

    def test_clean_document_second(self):
        clean = parse_fragment('<h2 class="post-title">Clean Title</h2>')
        assert extract_title("x.com_a.html", None, clean) == "Clean Title"

    def test_fallback_from_source_id(self):
        assert fallback_title("www.example.com_services_truck-repair.html") == "Services Truck Repair"
        assert fallback_title("www.example.com.html") == "www.example.com"

    def test_excerpt_first_non_empty_paragraph(self):
        soup = parse_fragment("<p> </p><p>First  real\nparagraph.</p><p>Second.</p>")
        assert extract_excerpt(soup) == "First real paragraph."

    def test_excerpt_truncated(self):
        text = "word " * 60
        excerpt = truncate_excerpt(text)
        assert len(excerpt) <= 150
        assert excerpt.endswith("...")

    def test_excerpt_without_paragraphs(self):
        assert extract_excerpt(parse_fragment("<div>Plain text</div>")) == "Plain text"


class TestImageRewrite:
    def test_rewrites_downloaded_images(self):
        soup = parse_fragment('<img src="/img/hero.png?w=300"><img src="/img/other.png">')
        records = [
            ImageRecord(
                original_url="https://www.example.com/img/hero.png",
                local_filename="best-trucks_hero.jpg",
                article_slug="best-trucks",
                source_id=ARTICLE_ID,
            ),
            ImageRecord(
                original_url="https://www.example.com/img/other.png",
                local_filename="best-trucks_other.png",
                article_slug="best-trucks",
                source_id=ARTICLE_ID,
                error="download_failed: HTTP 404",
            ),
        ]
        count = rewrite_image_sources(soup, records, "images/", "https://www.example.com/blog/")
        assert count == 1
        sources = [img['src'] for img in soup.find_all('img')]
        assert sources == ["images/best-trucks_hero.jpg", "/img/other.png"]


class TestWriteCsv:
    def test_quoting(self, tmp_path):
        path = str(tmp_path / "out" / "import.csv")
        row = ExportRow(
            title='The "Best" Trucks, Ranked',
            slug="best-trucks",
            content='<p class="x">Line one\nLine two</p>',
            excerpt="Line one",
            type="post",
            status="publish",
            date="2023-03-08 00:00:00",
            category="Imported Content",
        )
        size = write_csv(path, [row])
        assert size == os.path.getsize(path)

        with open(path, encoding='utf-8') as f:
            text = f.read()
        lines = text.split('\n')
        assert lines[0] == ','.join(f'"{h}"' for h in CSV_HEADERS)
        assert '"The ""Best"" Trucks, Ranked"' in text
        assert '"<p class=""x"">Line one\nLine two</p>"' in text

        with open(path, encoding='utf-8', newline='') as f:
            rows = list(csv.reader(f))
        assert rows[1] == [
            'The "Best" Trucks, Ranked',
            '<p class="x">Line one\nLine two</p>',
            "post",
            "publish",
            "2023-03-08 00:00:00",
            "best-trucks",
            "Line one",
            "Imported Content",
        ]


class TestCsvExporter:
    def make_exporter(self, tmp_path, **config):
        return CsvExporter(ExportConfig(**config), str(tmp_path / "export" / "wordpress-import.csv"))

    def test_build_row(self, tmp_path, article_doc):
        clean = CleanDocument(ARTICLE_ID, '<p>Here are the trucks.</p><img src="/img/hero.png">', POST_VERDICT)
        images = [ImageRecord(
            original_url="https://www.example.com/img/hero.png",
            local_filename="best-trucks_hero.png",
            article_slug="best-trucks",
            source_id=ARTICLE_ID,
        )]
        row = self.make_exporter(tmp_path).build_row(clean, article_doc, images)

        assert row.title == "Best Trucks of 2025"
        assert row.slug == "blog-2025-march-03-best-trucks"
        assert row.date == "2025-03-03 09:30:00"
        assert row.excerpt == "Here are the trucks."
        assert row.type == "post"
        assert row.status == "publish"
        assert row.category == "Imported Content"
        assert 'src="images/best-trucks_hero.png"' in row.content

    def test_page_without_raw_document(self, tmp_path):
        clean = CleanDocument("www.example.com_about-us.html", "<p>About</p>", PAGE_VERDICT)
        row = self.make_exporter(tmp_path, status="draft").build_row(clean)

        assert row.title == "About Us"
        assert row.slug == "about-us"
        assert row.category == ""
        assert row.status == "draft"
        assert re.fullmatch(r'\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}', row.date)

    def test_image_rewrite_disabled(self, tmp_path, article_doc):
        clean = CleanDocument(ARTICLE_ID, '<img src="/img/hero.png">', POST_VERDICT)
        images = [ImageRecord("https://www.example.com/img/hero.png", "a.png", "best-trucks", ARTICLE_ID)]
        row = self.make_exporter(tmp_path, image_url_prefix=None).build_row(clean, article_doc, images)
        assert row.content == '<img src="/img/hero.png">'

    def test_export(self, tmp_path, article_doc, page_doc):
        exporter = self.make_exporter(tmp_path)
        documents = [
            CleanDocument(ARTICLE_ID, "<p>Trucks</p>", POST_VERDICT),
            CleanDocument(page_doc.source_id, "<p>About</p>", PAGE_VERDICT),
        ]
        summary = exporter.export(documents, [article_doc, page_doc])

        assert summary.succeeded == 2
        with open(exporter.output_path, encoding='utf-8', newline='') as f:
            rows = list(csv.DictReader(f))
        assert [r['post_type'] for r in rows] == ["post", "page"]
        assert [r['post_name'] for r in rows] == ["blog-2025-march-03-best-trucks", "about-us"]
        assert rows[1]['post_title'] == "About Us"

        with open(exporter.summary_path, encoding='utf-8') as f:
            generated = json.load(f)
        assert generated['posts'] == 1
        assert generated['pages'] == 1
        assert generated['items'][1] == {
            'source_id': page_doc.source_id,
            'title': "About Us",
            'slug': "about-us",
            'type': "page",
            'confidence': 80,
            'reason': "Post selector not found",
        }

    def test_no_documents(self, tmp_path):
        with pytest.raises(ExportError) as exc_info:
            self.make_exporter(tmp_path).export([])
        assert exc_info.value.kind == ExportErrorKind.NO_INPUT_DOCUMENTS

    def test_unwritable_output(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding='utf-8')
        exporter = CsvExporter(ExportConfig(), str(blocker / "import.csv"))
        documents = [CleanDocument(ARTICLE_ID, "<p>Trucks</p>", POST_VERDICT)]

        with pytest.raises(ExportError) as exc_info:
            exporter.export(documents)
        assert exc_info.value.kind == ExportErrorKind.SERIALIZATION_FAILURE
