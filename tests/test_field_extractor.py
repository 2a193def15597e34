"""
Unit tests for Field Extractor

Tests the per-field fallback chain (site selectors, generic fallbacks,
source default author, static defaults) and the minimum content check.
"""

import pytest

from harvester.core.base import SelectorChain, SourceSpec
from harvester.processors.fields import FieldExtractor
from harvester.processors.markup import MarkupDocument


URL = "https://example.com/blog/post-1"

PARAGRAPHS = [
    "Binary search halves the interval on every step of the loop.",
    "Two pointers walk towards each other from both ends of an array.",
    "Sliding windows keep a running aggregate over a moving range.",
]


class TestFieldExtractor:
    """Test cases for FieldExtractor"""

    @pytest.fixture
    def extractor(self):
        return FieldExtractor({'processing': {'min_content_length': 50, 'max_content_length': 50000}})

    @pytest.fixture
    def bare_source(self):
        """A source with no site-specific selectors"""
        return SourceSpec(
            name="bare",
            url="https://example.com/list",
            base_url="https://example.com",
            content_type="other",
        )

    def test_site_selectors(self, extractor, blog_source):
        """Test site-specific selectors resolve every field"""
        html = f"""
        <html><head><title>Browser title</title></head><body>
            <h1 class="post-title">  Searching Sorted Arrays  </h1>
            <span class="byline"> Jane Doe </span>
            <time>2024-03-01</time>
            <div class="post-content"><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></div>
        </body></html>
        """
        record = extractor.extract_fields(html, URL, blog_source)

        assert record is not None
        assert record.title == "Searching Sorted Arrays"
        assert record.author == "Jane Doe"
        assert record.date == "2024-03-01"
        assert record.content == f"<p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p>"
        assert record.content_type == "blog"
        assert record.source_url == URL
        assert record.user_id == ""

    def test_output_shape(self, extractor, blog_source):
        """Test the output dictionary carries exactly the record keys"""
        html = f'<h1 class="post-title">T</h1><div class="post-content"><p>{PARAGRAPHS[0]}</p></div>'
        record = extractor.extract_fields(html, URL, blog_source)

        assert set(record.to_dict()) == {'title', 'content', 'content_type', 'source_url', 'author', 'user_id'}

    def test_generic_fallbacks(self, extractor, bare_source):
        """Test generic fallback selectors are used when the site has none"""
        html = f"""
        <h1>Fallback Title</h1>
        <div class="author">Sam Writer</div>
        <article><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[2]}</p></article>
        """
        record = extractor.extract_fields(html, URL, bare_source)

        assert record.title == "Fallback Title"
        assert record.author == "Sam Writer"
        assert PARAGRAPHS[0] in record.content
        assert PARAGRAPHS[2] in record.content

    def test_default_author_and_title(self, extractor, blog_source):
        """Test the source default author and the static title default"""
        html = f'<div class="post-content"><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></div>'
        record = extractor.extract_fields(html, URL, blog_source)

        assert record.title == "Untitled"
        assert record.author == "Example Team"
        assert record.date == ""

    def test_static_author_default(self, extractor, bare_source):
        """Test author falls back to an empty string without a source default"""
        html = f'<article><p>{PARAGRAPHS[0]}</p><p>{PARAGRAPHS[1]}</p></article>'
        record = extractor.extract_fields(html, URL, bare_source)

        assert record.author == ""

    def test_site_selector_beats_fallback(self, extractor, blog_source):
        """Test a site-specific match wins over generic selectors for the same field"""
        html = f"""
        <h1>Generic heading</h1>
        <h1 class="post-title">Specific heading</h1>
        <div class="post-content"><p>{PARAGRAPHS[0]}</p></div>
        """
        record = extractor.extract_fields(html, URL, blog_source)

        assert record.title == "Specific heading"

    def test_paragraph_fallback_content(self, extractor, bare_source):
        """Test content resolved only by the paragraph fallback keeps all paragraphs in order"""
        html = "<div>" + "".join(f"<p>{text}</p>" for text in PARAGRAPHS) + "</div>"
        doc = MarkupDocument(html)

        content = extractor.resolve_field(doc, 'content', bare_source)

        assert content == "\n\n".join(PARAGRAPHS)

    def test_content_below_threshold(self, extractor, blog_source):
        """Test content shorter than the minimum yields no record"""
        html = '<h1 class="post-title">Short</h1><div class="post-content"><p>tiny</p></div>'

        assert extractor.extract_fields(html, URL, blog_source) is None

    def test_threshold_applies_after_cleaning(self, extractor, blog_source):
        """Test stripped script text does not count towards the minimum"""
        html = (
            '<div class="post-content">'
            '<script>var analytics = "a long script body that is not content";</script>'
            '<p>Hi there</p></div>'
        )

        assert extractor.extract_fields(html, URL, blog_source) is None

    def test_threshold_property(self, blog_source):
        """Test records are produced only at or above the minimum length"""
        extractor = FieldExtractor({'processing': {'min_content_length': 30}})
        for size in [21, 29, 30, 31, 80]:
            html = f'<div class="post-content">{"z" * size}</div>'
            record = extractor.extract_fields(html, URL, blog_source)
            if size < 30:
                assert record is None
            else:
                assert record is not None
                assert len(record.content) >= 30

    def test_content_keeps_internal_structure(self, extractor, blog_source):
        """Test content is cleaned but not stripped of its markup"""
        html = (
            '<div class="post-content">'
            f'<h2>Intro</h2><p>{PARAGRAPHS[0]}</p><pre><code>x = 1</code></pre>'
            '</div>'
        )
        record = extractor.extract_fields(html, URL, blog_source)

        assert "<h2>Intro</h2>" in record.content
        assert "<pre><code>x = 1</code></pre>" in record.content

    def test_custom_fallback_selectors(self, bare_source):
        """Test fallback chains come from configuration"""
        extractor = FieldExtractor({
            'fallback_selectors': {'title': ['.headline'], 'content': ['.body-content']}
        })
        html = f'<h1>Ignored</h1><div class="headline">Configured</div><div class="body-content"><p>{PARAGRAPHS[1]}</p></div>'
        record = extractor.extract_fields(html, URL, bare_source)

        assert record.title == "Configured"
