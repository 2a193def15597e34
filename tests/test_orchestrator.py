"""
Tests for PipelineOrchestrator

Fetching is mocked; link resolution, extraction, cleaning and conversion
run for real.
"""

import pytest
from unittest.mock import AsyncMock, patch

from harvester.core.base import FetchExhausted, SiteSpec, SourceSpec, SelectorChain, SourceState
from harvester.core.orchestrator import PipelineOrchestrator
from harvester.processors.cleaner import ContentCleaner
from harvester.processors.fields import FieldExtractor
from harvester.processors.links import LinkResolver
from harvester.processors.markdown import MarkdownConverter
from harvester.utils.component_factory import create_orchestrator


LISTING_URL = "https://example.com/blog"
BODY = "A detailed walkthrough of the technique with plenty of explanatory text."


def listing_html(count):
    return "".join(f'<a href="/blog/post-{n}">Post {n}</a>' for n in range(1, count + 1))


def detail_html(n, body=BODY):
    return (
        f'<h1 class="post-title">Post {n}</h1>'
        f'<div class="post-content"><p>{body}</p><p><code>step_{n}()</code></p></div>'
    )


def make_fetch(pages, failing=()):
    """Fake fetch serving markup by URL and exhausting for failing URLs"""
    async def fetch(url, max_attempts=None):
        if url in failing:
            raise FetchExhausted(url, 3)
        return pages[url]
    return fetch


def build_orchestrator(config, retriever, renderer=None):
    orchestrator = PipelineOrchestrator(config)
    orchestrator.register_component("retriever", retriever)
    if renderer is not None:
        orchestrator.register_component("renderer", renderer)
    orchestrator.register_component("link_resolver", LinkResolver(config))
    cleaner = ContentCleaner(config)
    orchestrator.register_component("cleaner", cleaner)
    orchestrator.register_component("field_extractor", FieldExtractor(config, cleaner=cleaner))
    orchestrator.register_component("markdown_converter", MarkdownConverter(config))
    return orchestrator


class TestPipelineOrchestrator:
    """Test suite for PipelineOrchestrator"""

    @pytest.fixture
    def config(self):
        return {
            'request': {'politeness_delay': 0.0},
            'processing': {'min_content_length': 50, 'max_content_length': 50000}
        }

    @pytest.fixture
    def pages(self):
        pages = {LISTING_URL: listing_html(5)}
        for n in range(1, 6):
            pages[f"https://example.com/blog/post-{n}"] = detail_html(n)
        return pages

    @pytest.mark.asyncio
    async def test_item_failure_does_not_abort_source(self, config, pages, example_site, blog_source):
        """Test one exhausted item leaves the other four records"""
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages, failing={"https://example.com/blog/post-3"})
        orchestrator = build_orchestrator(config, retriever)

        records = await orchestrator.scrape_source(example_site, blog_source)

        assert len(records) == 4
        assert [r.title for r in records] == ["Post 1", "Post 2", "Post 4", "Post 5"]
        result = orchestrator.results[-1]
        assert result.state is SourceState.DONE
        assert result.links_found == 5
        assert result.items_failed == 1
        assert result.items_skipped == 0

    @pytest.mark.asyncio
    async def test_records_are_converted_to_markdown(self, config, pages, example_site, blog_source):
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages)
        orchestrator = build_orchestrator(config, retriever)

        records = await orchestrator.scrape_source(example_site, blog_source)

        assert records[0].content == f"{BODY}\n\n`step_1()`"
        assert records[0].author == "Example Team"
        assert records[0].content_type == "blog"
        assert records[0].source_url == "https://example.com/blog/post-1"

    @pytest.mark.asyncio
    async def test_markdown_disabled(self, config, pages, example_site, blog_source):
        config['processing']['convert_to_markdown'] = False
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages)
        orchestrator = build_orchestrator(config, retriever)

        records = await orchestrator.scrape_source(example_site, blog_source)

        assert records[0].content.startswith("<p>")

    @pytest.mark.asyncio
    async def test_context_header(self, config, pages, example_site, blog_source):
        config['processing']['include_context'] = True
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages)
        orchestrator = build_orchestrator(config, retriever)

        records = await orchestrator.scrape_source(example_site, blog_source)

        assert records[0].content.startswith(
            "*By Example Team*\n\n*Source: https://example.com/blog/post-1*\n\n"
        )

    @pytest.mark.asyncio
    async def test_listing_failure(self, config, example_site, blog_source):
        """Test an unreachable listing fails the source without raising"""
        retriever = AsyncMock()
        retriever.fetch.side_effect = FetchExhausted(LISTING_URL, 3)
        orchestrator = build_orchestrator(config, retriever)

        records = await orchestrator.scrape_source(example_site, blog_source)

        assert records == []
        result = orchestrator.results[-1]
        assert result.state is SourceState.FAILED
        assert "Failed to fetch" in result.error_message
        retriever.fetch.assert_awaited_once_with(LISTING_URL)

    @pytest.mark.asyncio
    async def test_no_links_found(self, config, example_site, blog_source):
        """Test a listing without links ends the source with no records"""
        retriever = AsyncMock()
        retriever.fetch.return_value = "<p>Nothing to see</p>"
        orchestrator = build_orchestrator(config, retriever)

        result = await orchestrator.run_source(example_site, blog_source)

        assert result.state is SourceState.DONE
        assert result.records == []
        assert result.links_found == 0
        assert retriever.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_short_content_is_skipped(self, config, example_site, blog_source):
        pages = {
            LISTING_URL: listing_html(2),
            "https://example.com/blog/post-1": detail_html(1),
            "https://example.com/blog/post-2": '<div class="post-content"><p>tiny</p></div>',
        }
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages)
        orchestrator = build_orchestrator(config, retriever)

        result = await orchestrator.run_source(example_site, blog_source)

        assert len(result.records) == 1
        assert result.items_skipped == 1

    @pytest.mark.asyncio
    async def test_render_sources_use_renderer(self, config, example_site):
        """Test sources flagged requires_render are fetched through the renderer"""
        source = SourceSpec(
            name="guides",
            url="https://example.com/guides",
            base_url="https://example.com",
            requires_render=True,
            link_selectors=SelectorChain.from_config('a[href*="/guides/"]'),
        )
        pages = {
            "https://example.com/guides": '<a href="/guides/g1">G1</a>',
            "https://example.com/guides/g1": f"<article><h1>Guide</h1><p>{BODY}</p></article>",
        }
        retriever = AsyncMock()
        renderer = AsyncMock()
        renderer.render.side_effect = make_fetch(pages)
        orchestrator = build_orchestrator(config, retriever, renderer)

        records = await orchestrator.scrape_source(example_site, source)

        assert len(records) == 1
        assert records[0].title == "Guide"
        assert records[0].content_type == "other"
        assert renderer.render.await_count == 2
        retriever.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_politeness_delay(self, config, pages, example_site, blog_source):
        """Test the politeness delay is awaited between items, including after a failed one"""
        config['request']['politeness_delay'] = 1.5
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages, failing={"https://example.com/blog/post-2"})
        orchestrator = build_orchestrator(config, retriever)

        with patch('harvester.core.orchestrator.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
            await orchestrator.scrape_source(example_site, blog_source)

        assert mock_sleep.await_count == 4
        assert all(c.args[0] == 1.5 for c in mock_sleep.await_args_list)

    @pytest.mark.asyncio
    async def test_no_delay_after_last_item(self, config, example_site, blog_source):
        """Test a single-item source never waits"""
        config['request']['politeness_delay'] = 1.5
        pages = {
            LISTING_URL: listing_html(1),
            "https://example.com/blog/post-1": detail_html(1),
        }
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages)
        orchestrator = build_orchestrator(config, retriever)

        with patch('harvester.core.orchestrator.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
            records = await orchestrator.scrape_source(example_site, blog_source)

        assert len(records) == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fetch_wraps_markup_in_raw_page(self, config):
        """Test fetched markup is wrapped with its URL and render flag"""
        rendered_source = SourceSpec(
            name="docs", url="https://example.com/docs", base_url="https://example.com", requires_render=True
        )
        static_source = SourceSpec(name="blog", url=LISTING_URL, base_url="https://example.com")
        retriever = AsyncMock()
        retriever.fetch.return_value = "<p>static</p>"
        renderer = AsyncMock()
        renderer.render.return_value = "<p>rendered</p>"
        orchestrator = build_orchestrator(config, retriever, renderer)

        static_page = await orchestrator._fetch(LISTING_URL, static_source)
        rendered_page = await orchestrator._fetch("https://example.com/docs", rendered_source)

        assert (static_page.url, static_page.html, static_page.rendered) == (LISTING_URL, "<p>static</p>", False)
        assert rendered_page.html == "<p>rendered</p>"
        assert rendered_page.rendered is True

    @pytest.mark.asyncio
    async def test_run_and_stats(self, config, pages, example_site, blog_source):
        """Test a run over several sites aggregates results and statistics"""
        broken_source = SourceSpec(
            name="broken",
            url="https://broken.example.org/list",
            base_url="https://broken.example.org",
        )
        broken_site = SiteSpec(name="broken.example.org", base_url="https://broken.example.org",
                               sources=(broken_source,))
        retriever = AsyncMock()
        retriever.fetch.side_effect = make_fetch(pages, failing={"https://broken.example.org/list"})
        orchestrator = build_orchestrator(config, retriever)

        records = await orchestrator.run([example_site, broken_site])

        assert len(records) == 5
        stats = orchestrator.get_stats()
        assert stats['sources'] == 2
        assert stats['sources_failed'] == 1
        assert stats['records'] == 5
        assert stats['links_found'] == 5
        assert stats['per_source'] == {"example.com/blog": 5, "broken.example.org/broken": 0}
        assert len(stats['errors']) == 1

        report = orchestrator.generate_report()
        assert "HARVEST SUMMARY" in report
        assert "Records Produced: 5" in report

    @pytest.mark.asyncio
    async def test_initialize_and_cleanup_fan_out(self, config):
        retriever = AsyncMock()
        renderer = AsyncMock()
        orchestrator = build_orchestrator(config, retriever, renderer)

        await orchestrator.initialize()
        await orchestrator.cleanup()

        retriever.initialize.assert_awaited_once()
        renderer.initialize.assert_awaited_once()
        retriever.cleanup.assert_awaited_once()
        renderer.cleanup.assert_awaited_once()

    def test_register_unknown_component(self, config):
        orchestrator = PipelineOrchestrator(config)
        with pytest.raises(ValueError):
            orchestrator.register_component("classifier", AsyncMock())

    def test_create_orchestrator(self, config):
        """Test the factory registers every default component"""
        orchestrator = create_orchestrator(config)

        for name in ["retriever", "renderer", "link_resolver", "field_extractor",
                     "cleaner", "markdown_converter", "output_writer"]:
            assert getattr(orchestrator, name) is not None
        assert orchestrator.field_extractor.cleaner is orchestrator.cleaner
