"""
Base Classes and Interfaces for Site Content Harvester

Defines the data model shared by every stage of the pipeline, the abstract
component interfaces, and the error taxonomy.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Tuple, Mapping, Iterator, Union
from dataclasses import dataclass, field
from enum import Enum


class SourceState(Enum):
    """Lifecycle states of a single source run"""
    IDLE = "idle"
    FETCHING_LISTING = "fetching_listing"
    RESOLVING_LINKS = "resolving_links"
    SCRAPING_ITEM = "scraping_item"
    DONE = "done"
    FAILED = "failed"


RECORD_FIELDS = ("title", "content", "author", "date")


@dataclass(frozen=True)
class SelectorChain:
    """Ordered selector expressions for one extraction target"""
    selectors: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, value: Union[None, str, List[str], Tuple[str, ...], "SelectorChain"]) -> "SelectorChain":
        """
        Build a chain from a configured value

        A plain string is a single selector (commas inside it form one CSS
        group); a list keeps its configured order.
        """
        if value is None:
            return cls()
        if isinstance(value, SelectorChain):
            return value
        if isinstance(value, str):
            value = [value]
        return cls(tuple(s.strip() for s in value if s and s.strip()))

    def __iter__(self) -> Iterator[str]:
        return iter(self.selectors)

    def __len__(self) -> int:
        return len(self.selectors)


@dataclass(frozen=True)
class SourceSpec:
    """A scraping target: one listing page and how to read its detail pages"""
    name: str
    url: str
    base_url: str
    content_type: str = "other"
    default_author: str = ""
    listing_type: str = "blog_listing"
    requires_render: bool = False
    link_selectors: SelectorChain = field(default_factory=SelectorChain)
    field_selectors: Mapping[str, SelectorChain] = field(default_factory=dict)

    def selectors_for(self, field_name: str) -> SelectorChain:
        """Selector chain for a record field (empty when not configured)"""
        return self.field_selectors.get(field_name) or SelectorChain()


@dataclass(frozen=True)
class SiteSpec:
    """A site and its ordered sources"""
    name: str
    base_url: str
    sources: Tuple[SourceSpec, ...] = ()

    def get_source(self, name: str) -> Optional[SourceSpec]:
        for source in self.sources:
            if source.name == name:
                return source
        return None


@dataclass
class RawPage:
    """Fetched markup for a single URL"""
    url: str
    html: str
    status_code: int = 200
    rendered: bool = False


@dataclass
class ExtractedRecord:
    """Pipeline output unit"""
    title: str
    content: str
    content_type: str
    source_url: str
    author: str = ""
    user_id: str = ""
    date: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Output record shape consumed downstream"""
        return {
            'title': self.title,
            'content': self.content,
            'content_type': self.content_type,
            'source_url': self.source_url,
            'author': self.author,
            'user_id': self.user_id,
        }


@dataclass
class SourceResult:
    """Result of running the pipeline over one source"""
    site_name: str
    source_name: str
    state: SourceState = SourceState.IDLE
    records: List[ExtractedRecord] = field(default_factory=list)
    links_found: int = 0
    items_skipped: int = 0
    items_failed: int = 0
    error_message: Optional[str] = None
    processing_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.state is SourceState.DONE


class BaseComponent(ABC):
    """Base class for all harvester components"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the component"""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources"""
        pass

    def is_initialized(self) -> bool:
        """Check if component is initialized"""
        return self._initialized


class PageFetcherInterface(BaseComponent):
    """Interface for anything that turns a URL into markup"""

    @abstractmethod
    async def fetch(self, url: str, max_attempts: Optional[int] = None) -> str:
        """Return the page markup or raise FetchExhausted"""
        pass


class RendererInterface(BaseComponent):
    """Interface for the dynamic-rendering collaborator"""

    @abstractmethod
    async def render(self, url: str) -> str:
        """Return fully rendered markup or raise FetchExhausted"""
        pass


class OutputWriterInterface(BaseComponent):
    """Interface for record persistence"""

    @abstractmethod
    async def save_records(self, records: List[ExtractedRecord]) -> str:
        """Persist records and return the location written"""
        pass

    @abstractmethod
    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage statistics"""
        pass


class HarvesterError(Exception):
    """Base exception for harvester errors"""
    pass


class ConfigurationError(HarvesterError):
    """Configuration-related errors"""
    pass


class TransportError(HarvesterError):
    """Network failure, timeout or non-success status for one attempt"""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class FetchExhausted(HarvesterError):
    """All retry attempts for a URL failed"""

    def __init__(self, url: str, attempts: int, last_error: Optional[BaseException] = None):
        super().__init__(f"Failed to fetch {url} after {attempts} attempts: {last_error}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class NoLinksFound(HarvesterError):
    """A listing page produced no detail links"""

    def __init__(self, source_name: str):
        super().__init__(f"No links found for {source_name}")
        self.source_name = source_name


class ContentTooShort(HarvesterError):
    """Cleaned content fell below the minimum length"""

    def __init__(self, url: str, length: int, minimum: int):
        super().__init__(f"Content too short for {url} ({length} chars, minimum {minimum})")
        self.url = url
        self.length = length
        self.minimum = minimum


class ConversionFailure(HarvesterError):
    """HTML to Markdown conversion failed"""
    pass


class StorageError(HarvesterError):
    """Output persistence errors"""
    pass
