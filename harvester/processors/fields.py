"""
Field Extractor

Resolves title, content, author and date from a detail page through the
site selector chain, the generic fallback chain and static defaults, and
builds an ExtractedRecord when the cleaned content is long enough.
"""

from typing import Dict, Any, Optional

from harvester.core.base import (
    BaseComponent,
    ContentTooShort,
    ExtractedRecord,
    SourceSpec,
)
from harvester.core.config import FallbackSelectors
from harvester.core.logging import get_logger, logging_manager
from harvester.processors.cleaner import ContentCleaner
from harvester.processors.markup import MarkupDocument
from harvester.processors.selectors import resolve_chain


STATIC_DEFAULTS = {
    'title': "Untitled",
    'content': "",
    'author': "",
    'date': "",
}


class FieldExtractor(BaseComponent):
    """Extracts record fields from detail-page markup"""

    def __init__(self, config: Optional[Dict[str, Any]] = None, cleaner: Optional[ContentCleaner] = None):
        super().__init__(config or {})
        self.logger = get_logger()
        self.fallback_selectors = FallbackSelectors.from_dict(self.config.get('fallback_selectors'))
        self.cleaner = cleaner or ContentCleaner(self.config)

    async def initialize(self) -> None:
        self._initialized = True

    async def cleanup(self) -> None:
        pass

    def resolve_field(self, doc: MarkupDocument, field_name: str, source: SourceSpec) -> str:
        """
        Resolve one field

        Order: site selectors, generic fallback selectors, the source's
        default author (author only), then the static default.
        """
        for chain in (source.selectors_for(field_name), self.fallback_selectors.chain(field_name)):
            value = resolve_chain(doc, chain)
            if value is not None:
                return value

        if field_name == 'author' and source.default_author:
            return source.default_author
        return STATIC_DEFAULTS.get(field_name, "")

    def extract_fields(self, detail_html: str, url: str, source: SourceSpec) -> Optional[ExtractedRecord]:
        """
        Extract a record from a detail page

        Args:
            detail_html: Detail page markup
            url: URL the markup was fetched from
            source: Source the page belongs to

        Returns:
            The record, or None when the cleaned content is too short
        """
        doc = MarkupDocument(detail_html)

        title = self.resolve_field(doc, 'title', source)
        content = self.resolve_field(doc, 'content', source)
        author = self.resolve_field(doc, 'author', source)
        date = self.resolve_field(doc, 'date', source)

        cleaned = self.cleaner.clean(content)

        try:
            self._check_length(url, cleaned)
        except ContentTooShort as e:
            logging_manager.log_warning(f"{e}, skipping", {
                'title': title.strip(),
                'author': author.strip(),
                'raw_length': len(content),
                'clean_length': len(cleaned),
            })
            self.logger.debug(f"Clean content preview: {cleaned[:100]!r}")
            return None

        return ExtractedRecord(
            title=title.strip(),
            content=cleaned,
            content_type=source.content_type or "other",
            source_url=url,
            author=author.strip(),
            user_id="",
            date=date.strip(),
        )

    def _check_length(self, url: str, cleaned: str) -> None:
        if not self.cleaner.is_substantial(cleaned):
            raise ContentTooShort(url, len(cleaned), self.cleaner.min_content_length)
