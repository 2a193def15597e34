"""
Dynamic Page Renderer

Fetches fully rendered markup for JavaScript-heavy pages through a headless
browser driven by crawl4ai.
"""

import asyncio
import time
from typing import Dict, Any, Optional

from crawl4ai import AsyncWebCrawler, BrowserConfig, CrawlerRunConfig

from harvester.core.base import (
    FetchExhausted,
    RendererInterface,
    TransportError,
)
from harvester.core.config import RenderConfig
from harvester.core.logging import get_logger


class DynamicRenderer(RendererInterface):
    """
    crawl4ai-backed renderer.

    The browser is started lazily on first use and shared for the lifetime
    of the component; each render gets its own page timeout.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.logger = get_logger()
        self.render_config = RenderConfig.from_dict(config.get('render'))
        self.retry_delay = config.get('request', {}).get('retry_delay', 1.0)

        self.crawler: Optional[AsyncWebCrawler] = None
        self.browser_config: Optional[BrowserConfig] = None
        self.run_config: Optional[CrawlerRunConfig] = None

        self.stats = {
            'total_renders': 0,
            'successful_renders': 0,
            'failed_renders': 0,
            'total_time': 0.0
        }

    async def initialize(self) -> None:
        """Prepare browser and run settings; the browser itself starts on first render"""
        if self._initialized:
            return

        self.logger.info("Initializing dynamic renderer...")
        self.browser_config = BrowserConfig(
            headless=self.render_config.headless,
            viewport_width=self.render_config.viewport_width,
            viewport_height=self.render_config.viewport_height,
            extra_args=[
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu"
            ]
        )
        self.run_config = CrawlerRunConfig(
            wait_until=self.render_config.wait_until,
            page_timeout=int(self.render_config.timeout * 1000)
        )

        self._initialized = True
        self.logger.info("Dynamic renderer initialized")

    async def _start_browser(self) -> None:
        self.logger.info("Starting headless browser")
        crawler = AsyncWebCrawler(config=self.browser_config)
        await crawler.start()
        self.crawler = crawler

    async def cleanup(self) -> None:
        """Close the browser"""
        if self.crawler:
            try:
                await self.crawler.close()
            finally:
                self.crawler = None
        self._initialized = False
        self.logger.info("Dynamic renderer cleaned up")

    async def render(self, url: str) -> str:
        """
        Render a URL and return its final markup

        Raises:
            FetchExhausted: If every render attempt failed
        """
        if not self._initialized:
            await self.initialize()

        attempts = max(1, self.render_config.max_attempts)
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            start_time = time.time()
            self.stats['total_renders'] += 1
            try:
                self.logger.info(f"Rendering {url} (attempt {attempt}/{attempts})")
                if self.crawler is None:
                    await self._start_browser()
                result = await self.crawler.arun(url=url, config=self.run_config)
                if not result.success or not result.html:
                    raise TransportError(url, result.error_message or "Render returned no markup")

                self.stats['successful_renders'] += 1
                self.stats['total_time'] += time.time() - start_time
                return result.html
            except TransportError as e:
                last_error = e
            except Exception as e:
                # crawl4ai surfaces browser failures as assorted exception types
                last_error = TransportError(url, f"Render failed: {e}")

            self.stats['failed_renders'] += 1
            self.stats['total_time'] += time.time() - start_time
            self.logger.warning(f"Render attempt {attempt} failed for {url}: {last_error}")
            if attempt < attempts:
                await asyncio.sleep(self.retry_delay * attempt)

        raise FetchExhausted(url, attempts, last_error)

    def get_stats(self) -> Dict[str, Any]:
        """Get rendering statistics"""
        return {
            **self.stats,
            'average_time': self.stats['total_time'] / max(self.stats['total_renders'], 1)
        }
