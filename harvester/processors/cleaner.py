"""
Content Cleaner

Strips non-content markup from an extracted fragment, normalizes whitespace,
drops empty paragraphs and enforces the maximum content length.
"""

import re
from typing import Dict, Any, Optional

from harvester.core.base import BaseComponent
from harvester.core.config import ProcessingConfig
from harvester.core.logging import get_logger
from harvester.processors.markup import MarkupDocument


ALWAYS_REMOVED = ("script", "style")
NAVIGATION_ELEMENTS = ("nav", "footer", "header", ".navigation", ".nav", ".menu")
ELLIPSIS = "..."

_WHITESPACE_RE = re.compile(r'\s+')
_EMPTY_PARAGRAPH_RE = re.compile(r'<p>\s*</p>')


class ContentCleaner(BaseComponent):
    """
    Cleans extracted HTML fragments.

    Never raises: a fragment that cannot be parsed is cleaned textually, and
    empty input yields an empty string.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self.logger = get_logger()
        self.processing_config = ProcessingConfig.from_dict(self.config.get('processing'))
        self.rules = self.processing_config.cleanup_rules

    async def initialize(self) -> None:
        self._initialized = True

    async def cleanup(self) -> None:
        pass

    @property
    def min_content_length(self) -> int:
        return self.processing_config.min_content_length

    @property
    def max_content_length(self) -> int:
        return self.processing_config.max_content_length

    def clean(self, fragment: Optional[str]) -> str:
        """
        Clean an HTML fragment

        Args:
            fragment: Extracted markup (may be None or empty)

        Returns:
            Cleaned markup, at most max_content_length characters long
        """
        if not fragment:
            return ""

        cleaned = self._strip_elements(fragment)

        if self.rules.remove_excessive_whitespace:
            cleaned = _WHITESPACE_RE.sub(' ', cleaned)

        if self.rules.remove_empty_paragraphs:
            cleaned = _EMPTY_PARAGRAPH_RE.sub('', cleaned)

        cleaned = cleaned.strip()

        return self.truncate(cleaned)

    def truncate(self, text: str) -> str:
        """Hard length cap; the ellipsis counts towards the limit"""
        limit = self.max_content_length
        if len(text) <= limit:
            return text
        return text[:max(limit - len(ELLIPSIS), 0)] + ELLIPSIS

    def is_substantial(self, text: str) -> bool:
        return len(text) >= self.min_content_length

    def _strip_elements(self, fragment: str) -> str:
        selectors = list(ALWAYS_REMOVED)
        if self.rules.remove_navigation_elements:
            selectors.extend(NAVIGATION_ELEMENTS)

        try:
            doc = MarkupDocument(fragment)
            doc.remove_matching(", ".join(selectors))
            return doc.to_html()
        except Exception as e:
            self.logger.warning(f"Could not parse fragment for cleaning, using it as-is: {e}")
            return fragment
