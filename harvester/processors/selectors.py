"""
Selector resolution strategies

Each configured selector becomes a strategy ``(document) -> Optional[str]``;
a chain is resolved by evaluating its strategies in order until one returns
a value.
"""

from typing import Callable, Iterable, List, Optional

from harvester.core.base import SelectorChain
from harvester.processors.markup import MarkupDocument


Strategy = Callable[[MarkupDocument], Optional[str]]

# Selectors whose text mentions one of these are read as markup, not text.
CONTENT_SELECTOR_HINTS = ("content", "article", "main", "prose", "markdown")
PARAGRAPH_SELECTOR = "p"
MIN_MARKUP_LENGTH = 20
MIN_PARAGRAPH_TEXT_LENGTH = 20


def is_content_selector(selector: str) -> bool:
    """Whether a selector should yield markup rather than text"""
    return selector == PARAGRAPH_SELECTOR or any(hint in selector for hint in CONTENT_SELECTOR_HINTS)


def text_strategy(selector: str) -> Strategy:
    """Trimmed text of the first match; matches only when non-empty"""
    def resolve(doc: MarkupDocument) -> Optional[str]:
        elements = doc.find_all(selector)
        if not elements:
            return None
        text = doc.text(elements[0]).strip()
        return text or None
    return resolve


def markup_strategy(selector: str) -> Strategy:
    """Inner markup of the first match; matches only when substantial"""
    def resolve(doc: MarkupDocument) -> Optional[str]:
        elements = doc.find_all(selector)
        if not elements:
            return None
        markup = doc.inner_markup(elements[0])
        return markup if len(markup.strip()) > MIN_MARKUP_LENGTH else None
    return resolve


def paragraph_strategy(selector: str = PARAGRAPH_SELECTOR) -> Strategy:
    """Markup of every substantial paragraph, in document order, separated by blank lines"""
    def resolve(doc: MarkupDocument) -> Optional[str]:
        fragments = [
            doc.inner_markup(element)
            for element in doc.find_all(selector)
            if len(doc.text(element).strip()) > MIN_PARAGRAPH_TEXT_LENGTH
        ]
        combined = "\n\n".join(fragments)
        return combined if len(combined.strip()) > MIN_MARKUP_LENGTH else None
    return resolve


def strategy_for(selector: str) -> Strategy:
    if selector == PARAGRAPH_SELECTOR:
        return paragraph_strategy(selector)
    if is_content_selector(selector):
        return markup_strategy(selector)
    return text_strategy(selector)


def build_strategies(chain: Iterable[str]) -> List[Strategy]:
    return [strategy_for(selector) for selector in chain]


def first_match(strategies: Iterable[Strategy], doc: MarkupDocument) -> Optional[str]:
    """Value of the first strategy that matches; later strategies are not evaluated"""
    for strategy in strategies:
        value = strategy(doc)
        if value is not None:
            return value
    return None


def resolve_chain(doc: MarkupDocument, chain: SelectorChain) -> Optional[str]:
    return first_match(build_strategies(chain), doc)
