"""
Content processing components for Site Content Harvester

This package contains components for processing pages including:
- Listing link resolution
- Field extraction with selector fallback chains
- Fragment cleaning
- HTML to markdown conversion
"""

from harvester.processors.markup import MarkupDocument
from harvester.processors.links import LinkResolver
from harvester.processors.cleaner import ContentCleaner
from harvester.processors.fields import FieldExtractor
from harvester.processors.markdown import MarkdownConverter

__all__ = [
    'MarkupDocument',
    'LinkResolver',
    'ContentCleaner',
    'FieldExtractor',
    'MarkdownConverter'
]
