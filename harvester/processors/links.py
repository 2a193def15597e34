"""
Link Resolver

Turns a listing page into the ordered, duplicate-free list of absolute
detail-page URLs to scrape.
"""

from typing import Dict, Any, List, Optional

from harvester.core.base import BaseComponent, SelectorChain
from harvester.core.logging import get_logger
from harvester.processors.markup import MarkupDocument


def normalize_href(href: str, base_url: str) -> str:
    """
    Make an href absolute against a base URL

    Root-relative hrefs are appended to the base, other relative hrefs are
    joined with a slash, and anything already carrying a scheme is returned
    unchanged.
    """
    href = href.strip()
    base_url = base_url.rstrip('/')
    if href.startswith('/'):
        return base_url + href
    if not href.startswith('http'):
        return base_url + '/' + href
    return href


def is_acceptable_link(url: str) -> bool:
    """Reject scheme-less, fragment and mailto links"""
    return 'http' in url and '#' not in url and 'mailto:' not in url


class LinkResolver(BaseComponent):
    """Resolves detail links from listing markup using a selector fallback chain"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self.logger = get_logger()

    async def initialize(self) -> None:
        self._initialized = True

    async def cleanup(self) -> None:
        pass

    def resolve_links(self, listing_html: str, base_url: str, selector_chain: SelectorChain) -> List[str]:
        """
        Extract detail links from a listing page

        Selectors are tried in order; the first one that yields at least one
        acceptable link wins and the rest are not evaluated.

        Args:
            listing_html: Listing page markup
            base_url: Base URL for relative hrefs
            selector_chain: Ordered link selectors

        Returns:
            Absolute URLs in first-seen order, without duplicates
        """
        doc = MarkupDocument(listing_html)

        for selector in selector_chain:
            links: Dict[str, None] = {}
            for element in doc.find_all(selector):
                href = doc.attr(element, 'href')
                if not href:
                    continue
                url = normalize_href(href, base_url)
                if is_acceptable_link(url):
                    links.setdefault(url, None)

            if links:
                self.logger.debug(f"Selector {selector!r} yielded {len(links)} links")
                return list(links)

        return []
