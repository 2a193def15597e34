"""
Site Content Harvester

Extracts structured content (title, author, body) from blog and guide pages
across multiple sites using per-site selector chains with generic fallbacks,
and normalizes the extracted HTML into clean Markdown.

Features:
- Resilient page retrieval with bounded retry and linear backoff
- Selector-chain link resolution for listing pages
- Field extraction with site, fallback and static defaults
- Content cleaning and length enforcement
- HTML to Markdown conversion with custom rendering rules
- Dynamic rendering for JavaScript-heavy pages via crawl4ai
- Configurable via YAML/JSON and environment variables
"""

__version__ = "0.1.0"
