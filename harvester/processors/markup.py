"""
Markup Document

Thin capability wrapper over BeautifulSoup: selector queries, text and inner
markup access, attribute lookup and subtree removal. Every processor talks to
markup through this class.
"""

from typing import List, Optional, Iterable

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from harvester.core.logging import get_logger


class MarkupDocument:
    """A parsed HTML document or fragment"""

    def __init__(self, html: Optional[str], parser: str = 'html.parser'):
        self.soup = BeautifulSoup(html or '', parser)
        self.logger = get_logger()

    def find_all(self, selector: str) -> List[Tag]:
        """Elements matching a CSS selector, in document order; [] for invalid selectors"""
        try:
            return self.soup.select(selector)
        except SelectorSyntaxError as e:
            self.logger.warning(f"Invalid selector {selector!r}: {e}")
            return []

    def text(self, element: Tag) -> str:
        return element.get_text()

    def inner_markup(self, element: Tag) -> str:
        return element.decode_contents()

    def attr(self, element: Tag, name: str) -> Optional[str]:
        value = element.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def remove(self, elements: Iterable[Tag]) -> int:
        """Remove elements (and their subtrees) from the document"""
        removed = 0
        for element in elements:
            if element.decomposed:
                continue
            element.decompose()
            removed += 1
        return removed

    def remove_matching(self, selector: str) -> int:
        return self.remove(self.find_all(selector))

    def to_html(self) -> str:
        return str(self.soup)

    def get_text(self) -> str:
        return self.soup.get_text()
