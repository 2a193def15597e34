"""
Static Page Retriever

Fetches page markup over HTTP with aiohttp, retrying failed attempts with a
linear backoff before giving up with FetchExhausted.
"""

import asyncio
import time
from typing import Dict, Any, Optional

import aiohttp
import validators

from harvester.core.base import (
    FetchExhausted,
    PageFetcherInterface,
    TransportError,
)
from harvester.core.config import RequestConfig
from harvester.core.logging import get_logger


class Retriever(PageFetcherInterface):
    """
    HTTP retriever with bounded retry.

    A request counts as successful only on status 200; any other status,
    transport error or timeout is a failed attempt. Attempt ``n`` is followed
    by a ``retry_delay * n`` second pause unless it was the last one.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.logger = get_logger()
        self.request_config = RequestConfig.from_dict(config.get('request'))
        self.session: Optional[aiohttp.ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_attempts': 0,
            'exhausted': 0,
            'total_time': 0.0
        }

    @property
    def headers(self) -> Dict[str, str]:
        return {
            'User-Agent': self.request_config.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
            'Upgrade-Insecure-Requests': '1',
        }

    async def initialize(self) -> None:
        """Open the HTTP session"""
        self.logger.info("Initializing retriever")
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_config.timeout),
                headers=self.headers
            )
        self._initialized = True

    async def cleanup(self) -> None:
        """Close the HTTP session"""
        self.logger.info("Cleaning up retriever")
        if self.session:
            await self.session.close()
            self.session = None
        self._initialized = False

    async def fetch(self, url: str, max_attempts: Optional[int] = None) -> str:
        """
        Fetch markup for a URL with retry

        Args:
            url: Absolute URL to fetch
            max_attempts: Attempt budget (defaults to the configured value)

        Returns:
            Response body text

        Raises:
            ValueError: If the URL is not absolute or max_attempts < 1
            FetchExhausted: If every attempt failed
        """
        attempts = self.request_config.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")
        if not url or not validators.url(url, strict_query=False, simple_host=True):
            raise ValueError(f"Not a well-formed absolute URL: {url!r}")

        if not self._initialized:
            await self.initialize()

        last_error: Optional[BaseException] = None
        for attempt in range(1, attempts + 1):
            start_time = time.time()
            self.stats['total_requests'] += 1
            try:
                self.logger.info(f"Fetching {url} (attempt {attempt}/{attempts})")
                html = await self._attempt(url)
                self.stats['successful_requests'] += 1
                self.stats['total_time'] += time.time() - start_time
                return html
            except TransportError as e:
                last_error = e
                self.stats['failed_attempts'] += 1
                self.stats['total_time'] += time.time() - start_time
                self.logger.warning(f"Attempt {attempt} failed for {url}: {e}")

            if attempt < attempts:
                await asyncio.sleep(self.request_config.retry_delay * attempt)

        self.stats['exhausted'] += 1
        raise FetchExhausted(url, attempts, last_error)

    async def _attempt(self, url: str) -> str:
        """Run a single GET; every failure mode surfaces as TransportError"""
        try:
            async with self.session.get(url) as response:
                if response.status != 200:
                    raise TransportError(url, f"HTTP {response.status}: {response.reason}", response.status)
                return await response.text(errors='replace')
        except asyncio.TimeoutError:
            raise TransportError(url, f"Timed out after {self.request_config.timeout}s")
        except aiohttp.ClientError as e:
            raise TransportError(url, f"Network error: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get retrieval statistics"""
        return {
            **self.stats,
            'success_rate': (
                self.stats['successful_requests'] / max(self.stats['total_requests'], 1)
            ) * 100
        }
