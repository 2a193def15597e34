"""
Markdown Converter

Handles HTML to markdown conversion: denylist pre-processing, per-tag
rendering rules checked before the default html2text conversion, and
textual post-processing of the result.
"""

import re
import uuid
from typing import Callable, Dict, Any, List, Optional

import html2text
from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from harvester.core.base import BaseComponent, ConversionFailure
from harvester.core.logging import get_logger
from harvester.processors.markup import MarkupDocument


PRE_PROCESS_REMOVED = (
    "script", "style", "nav", "header", "footer", "aside", "noscript",
    ".navigation", ".nav", ".menu", ".sidebar", ".ads", ".advertisement",
    ".social-share", ".comments", ".related-posts", ".newsletter-signup",
    ".cookie-notice", ".popup", ".modal",
)
EMPTY_ELEMENTS = "p:empty, div:empty, span:empty"

FENCE = "```"

# Rules whose output is a block of its own rather than inline text
BLOCK_RULES = ("pre", "blockquote", "table")

_POST_PROCESS_STEPS = (
    (re.compile(r'\n{4,}'), '\n\n\n'),
    (re.compile(r'^[ \t]*[-*+][ \t]*$', re.MULTILINE), ''),
    (re.compile(r'^(#{1,6})[ \t]*(.+?)[ \t]*$', re.MULTILINE), r'\1 \2'),
    (re.compile(r'[ \t]+$', re.MULTILINE), ''),
    (re.compile(r'```\n+'), '```\n'),
    (re.compile(r'\n+```'), '\n```'),
    (re.compile(r'\*{3,}'), '**'),
    (re.compile(r'_{3,}'), '__'),
)

Rule = Callable[[Tag], str]


class MarkdownConverter(BaseComponent):
    """
    Converts cleaned HTML fragments to Markdown.

    Elements with a rendering rule are rendered by that rule and stand in the
    document as placeholder tokens while html2text converts everything else.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self.logger = get_logger()

        # Configure HTML to Markdown converter
        self.html2text_config = {
            'body_width': 0,
            'ul_item_mark': '-',
            'emphasis_mark': '_',
            'strong_mark': '**',
            'inline_links': True,
            'protect_links': False,
            'wrap_links': False,
            'mark_code': False,
            'ignore_links': False,
            'ignore_images': False,
            'ignore_emphasis': False,
            'unicode_snob': True,
        }

        self.rules: Dict[str, Rule] = {
            'pre': self._render_pre,
            'code': self._render_code,
            'blockquote': self._render_blockquote,
            'table': self._render_table,
            'img': self._render_image,
        }

    async def initialize(self) -> None:
        self._initialized = True

    async def cleanup(self) -> None:
        pass

    def to_markdown(self, html: Optional[str]) -> str:
        """
        Convert HTML to markdown preserving structure and formatting

        Args:
            html: HTML fragment

        Returns:
            Markdown content; plain text if conversion fails, "" for empty input
        """
        if not html or not isinstance(html, str):
            return ""

        try:
            return self._convert(html)
        except ConversionFailure as e:
            self.logger.error(f"Error converting HTML to markdown: {e}")
            return self._fallback_text(html)

    def convert_with_context(self, html: Optional[str], author: Optional[str] = None,
                             source_url: Optional[str] = None) -> str:
        """Convert HTML and prepend a byline and source line"""
        markdown = self.to_markdown(html)

        header = ""
        if author and f"By {author}" not in markdown:
            header += f"*By {author}*\n\n"
        if source_url:
            header += f"*Source: {source_url}*\n\n"

        return header + markdown

    def pre_process(self, html: str) -> str:
        """Remove denylisted containers and empty elements"""
        doc = MarkupDocument(html)
        doc.remove_matching(", ".join(PRE_PROCESS_REMOVED))
        doc.remove_matching(EMPTY_ELEMENTS)
        return doc.to_html()

    def post_process(self, markdown: str) -> str:
        """Textual cleanup, applied in a fixed order"""
        for pattern, replacement in _POST_PROCESS_STEPS:
            markdown = pattern.sub(replacement, markdown)
        return markdown.strip()

    def _convert(self, html: str) -> str:
        try:
            markdown = self._convert_fragment(self.pre_process(html))
            return self.post_process(markdown)
        except Exception as e:
            raise ConversionFailure(f"HTML to markdown conversion failed: {e}") from e

    def _fallback_text(self, html: str) -> str:
        try:
            return MarkupDocument(html).get_text()
        except Exception as e:
            self.logger.error(f"Fallback text extraction also failed: {e}")
            return ""

    def _new_converter(self) -> html2text.HTML2Text:
        h2t = html2text.HTML2Text()
        for key, value in self.html2text_config.items():
            if hasattr(h2t, key):
                setattr(h2t, key, value)
        return h2t

    def _convert_fragment(self, html: str) -> str:
        """Render rule elements, convert the rest with html2text, then splice the renderings back"""
        soup = BeautifulSoup(html, 'html.parser')

        # Placeholders are unique per call
        nonce = uuid.uuid4().hex
        renderings: Dict[str, str] = {}
        for index, element in enumerate(self._rule_targets(soup)):
            token = f"MDRULE{nonce}R{index}X"
            rendered = self.rules[element.name](element)
            if element.name in BLOCK_RULES:
                placeholder = soup.new_tag('p')
                placeholder.string = token
                renderings[token] = rendered.strip('\n')
            else:
                placeholder = NavigableString(token)
                renderings[token] = rendered
            element.replace_with(placeholder)

        markdown = self._new_converter().handle(str(soup))

        for token in reversed(list(renderings)):
            markdown = markdown.replace(token, renderings[token])

        return markdown

    def _rule_targets(self, soup: BeautifulSoup) -> List[Tag]:
        """Rule elements with no rule-handled ancestor, in document order"""
        return [
            element for element in soup.find_all(list(self.rules))
            if not any(parent.name in self.rules for parent in element.parents)
        ]

    def _render_pre(self, element: Tag) -> str:
        return f"\n{FENCE}\n{element.get_text()}\n{FENCE}\n\n"

    def _render_code(self, element: Tag) -> str:
        return f"`{element.get_text()}`"

    def _render_blockquote(self, element: Tag) -> str:
        content = self._convert_fragment(element.decode_contents()).strip('\n')
        content = re.sub(r'^', '> ', content, flags=re.MULTILINE)
        return f"\n\n{content}\n\n"

    def _render_table(self, element: Tag) -> str:
        lines = []
        for row in element.find_all('tr'):
            if row.find_parent('table') is not element:
                continue
            cells = [
                " ".join(self._convert_fragment(cell.decode_contents()).split())
                for cell in row.find_all(['th', 'td'], recursive=False)
            ]
            lines.append(" | ".join(cells))
        return "\n\n" + "\n".join(lines) + "\n\n"

    def _render_image(self, element: Tag) -> str:
        src = element.get('src') or ""
        if not src:
            return ""
        alt = element.get('alt') or ""
        title = element.get('title')
        title_part = f' "{title}"' if title else ""
        return f"![{alt}]({src}{title_part})"
