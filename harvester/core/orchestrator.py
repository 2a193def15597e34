"""
Pipeline Orchestrator Implementation

Main orchestrator for the harvesting process: runs each source through
listing fetch, link resolution and per-item extraction, isolating item
failures from the rest of the source.
"""

import asyncio
import time
from typing import Dict, Any, List, Optional

from harvester.core.base import (
    BaseComponent,
    ConfigurationError,
    ExtractedRecord,
    FetchExhausted,
    NoLinksFound,
    OutputWriterInterface,
    PageFetcherInterface,
    RawPage,
    RendererInterface,
    SiteSpec,
    SourceResult,
    SourceSpec,
    SourceState,
)
from harvester.core.config import ProcessingConfig, RequestConfig
from harvester.core.logging import get_logger, logging_manager
from harvester.processors.cleaner import ContentCleaner
from harvester.processors.fields import FieldExtractor
from harvester.processors.links import LinkResolver
from harvester.processors.markdown import MarkdownConverter


COMPONENT_TYPES = (
    "retriever",
    "renderer",
    "link_resolver",
    "field_extractor",
    "cleaner",
    "markdown_converter",
    "output_writer",
)


class PipelineOrchestrator(BaseComponent):
    """
    Coordinates the pipeline components for every configured source.

    Sources and items are processed one at a time; a fixed politeness delay
    is awaited between consecutive item fetches.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.logger = get_logger()
        self.request_config = RequestConfig.from_dict(config.get('request'))
        self.processing_config = ProcessingConfig.from_dict(config.get('processing'))

        self.retriever: Optional[PageFetcherInterface] = None
        self.renderer: Optional[RendererInterface] = None
        self.link_resolver: Optional[LinkResolver] = None
        self.field_extractor: Optional[FieldExtractor] = None
        self.cleaner: Optional[ContentCleaner] = None
        self.markdown_converter: Optional[MarkdownConverter] = None
        self.output_writer: Optional[OutputWriterInterface] = None

        self.results: List[SourceResult] = []
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None

    def register_component(self, component_type: str, component: BaseComponent) -> None:
        """Register a component with the orchestrator"""
        if component_type not in COMPONENT_TYPES:
            raise ValueError(f"Unknown component type: {component_type}")
        setattr(self, component_type, component)

    def _components(self) -> List[BaseComponent]:
        return [
            getattr(self, name) for name in COMPONENT_TYPES
            if getattr(self, name) is not None
        ]

    async def initialize(self) -> None:
        """Initialize all components"""
        self.logger.info("Initializing pipeline orchestrator")

        for component in self._components():
            await component.initialize()

        self._initialized = True
        self.logger.info("Pipeline orchestrator initialized")

    async def cleanup(self) -> None:
        """Clean up resources"""
        self.logger.info("Cleaning up pipeline orchestrator")

        for component in self._components():
            await component.cleanup()

        self._initialized = False
        self.logger.info("Pipeline orchestrator cleanup completed")

    async def run(self, sites: List[SiteSpec]) -> List[ExtractedRecord]:
        """
        Process every source of every site

        Args:
            sites: Sites to harvest, in order

        Returns:
            All records produced, in source order
        """
        if not self._initialized:
            await self.initialize()

        self._start_time = time.time()
        records: List[ExtractedRecord] = []

        for site in sites:
            records.extend(await self.scrape_site(site))

        self._end_time = time.time()
        self.logger.info(f"Harvest finished with {len(records)} records from {len(self.results)} sources")

        return records

    async def scrape_site(self, site: SiteSpec) -> List[ExtractedRecord]:
        """Process the sources of one site sequentially"""
        self.logger.info(f"Scraping site {site.name} ({len(site.sources)} sources)")

        records: List[ExtractedRecord] = []
        for source in site.sources:
            records.extend(await self.scrape_source(site, source))
        return records

    async def scrape_source(self, site: SiteSpec, source: SourceSpec) -> List[ExtractedRecord]:
        """Records produced for one source; never raises for per-item or listing failures"""
        result = await self.run_source(site, source)
        return result.records

    async def run_source(self, site: SiteSpec, source: SourceSpec) -> SourceResult:
        """
        Run one source through the pipeline

        Args:
            site: Site the source belongs to
            source: Source to run

        Returns:
            Source result; state is FAILED only when the listing page could not be fetched
        """
        if not self._initialized:
            await self.initialize()

        start_time = time.time()
        result = SourceResult(site_name=site.name, source_name=source.name)
        self.logger.info(f"Scraping {source.name} from {source.url}")

        result.state = SourceState.FETCHING_LISTING
        try:
            listing = await self._fetch(source.url, source)
        except (FetchExhausted, ValueError) as e:
            result.state = SourceState.FAILED
            result.error_message = str(e)
            result.processing_time = time.time() - start_time
            logging_manager.log_source_result(
                source.name, 0, 0, result.processing_time, error_message=result.error_message
            )
            self.results.append(result)
            return result

        result.state = SourceState.RESOLVING_LINKS
        try:
            links = self._resolve_links(listing.html, site, source)
        except NoLinksFound as e:
            self.logger.warning(f"{e}. Check selectors.")
            links = []
        result.links_found = len(links)

        for index, link in enumerate(links, start=1):
            result.state = SourceState.SCRAPING_ITEM
            self.logger.info(f"Scraping {index}/{len(links)}: {link}")
            await self._scrape_item(link, source, result)

            # Be nice to the server
            if index < len(links):
                await asyncio.sleep(self.request_config.politeness_delay)

        result.state = SourceState.DONE
        result.processing_time = time.time() - start_time
        logging_manager.log_source_result(
            source.name, len(result.records), result.links_found, result.processing_time
        )
        self.results.append(result)
        return result

    def _resolve_links(self, listing_html: str, site: SiteSpec, source: SourceSpec) -> List[str]:
        base_url = source.base_url or site.base_url
        links = self.link_resolver.resolve_links(listing_html, base_url, source.link_selectors)
        if not links:
            raise NoLinksFound(source.name)
        self.logger.info(f"Found {len(links)} links to scrape")
        return links

    async def _scrape_item(self, link: str, source: SourceSpec, result: SourceResult) -> None:
        try:
            page = await self._fetch(link, source)
        except (FetchExhausted, ValueError) as e:
            self.logger.error(f"Failed to scrape {link}: {e}")
            result.items_failed += 1
            return

        record = self.field_extractor.extract_fields(page.html, page.url, source)
        if record is None:
            result.items_skipped += 1
            return

        if self.processing_config.convert_to_markdown and self.markdown_converter:
            if self.processing_config.include_context:
                record.content = self.markdown_converter.convert_with_context(
                    record.content, author=record.author, source_url=record.source_url
                )
            else:
                record.content = self.markdown_converter.to_markdown(record.content)

        result.records.append(record)

    async def _fetch(self, url: str, source: SourceSpec) -> RawPage:
        if source.requires_render and self.renderer:
            return RawPage(url=url, html=await self.renderer.render(url), rendered=True)
        if not self.retriever:
            raise ConfigurationError("Retriever not registered")
        return RawPage(url=url, html=await self.retriever.fetch(url))

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics for the sources processed so far"""
        elapsed = 0.0
        if self._start_time is not None:
            elapsed = (self._end_time or time.time()) - self._start_time

        return {
            'sources': len(self.results),
            'sources_failed': sum(1 for r in self.results if r.state is SourceState.FAILED),
            'links_found': sum(r.links_found for r in self.results),
            'records': sum(len(r.records) for r in self.results),
            'items_skipped': sum(r.items_skipped for r in self.results),
            'items_failed': sum(r.items_failed for r in self.results),
            'elapsed_time': elapsed,
            'per_source': {
                f"{r.site_name}/{r.source_name}": len(r.records) for r in self.results
            },
            'errors': [r.error_message for r in self.results if r.error_message],
        }

    def generate_report(self) -> str:
        """Generate and log the run summary"""
        return logging_manager.generate_summary_report(self.get_stats())
