"""
Core components for Site Content Harvester

This package contains the core components for the harvester including:
- Data model, interfaces and errors
- Configuration management
- Logging system
- Page retrieval and dynamic rendering
"""

from harvester.core.base import (
    SourceState,
    SelectorChain,
    SourceSpec,
    SiteSpec,
    RawPage,
    ExtractedRecord,
    SourceResult,
    BaseComponent,
    PageFetcherInterface,
    RendererInterface,
    OutputWriterInterface,
    HarvesterError,
    ConfigurationError,
    TransportError,
    FetchExhausted,
    NoLinksFound,
    ContentTooShort,
    ConversionFailure,
    StorageError
)

from harvester.core.config import (
    ConfigManager,
    RequestConfig,
    RenderConfig,
    ProcessingConfig,
    CleanupRules,
    FallbackSelectors,
    LoggingConfig,
    OutputConfig
)

from harvester.core.logging import (
    LoggingManager,
    get_logger,
    setup_logging
)

from harvester.core.retriever import Retriever
from harvester.core.renderer import DynamicRenderer

__all__ = [
    # Data model and interfaces
    'SourceState',
    'SelectorChain',
    'SourceSpec',
    'SiteSpec',
    'RawPage',
    'ExtractedRecord',
    'SourceResult',
    'BaseComponent',
    'PageFetcherInterface',
    'RendererInterface',
    'OutputWriterInterface',

    # Errors
    'HarvesterError',
    'ConfigurationError',
    'TransportError',
    'FetchExhausted',
    'NoLinksFound',
    'ContentTooShort',
    'ConversionFailure',
    'StorageError',

    # Configuration
    'ConfigManager',
    'RequestConfig',
    'RenderConfig',
    'ProcessingConfig',
    'CleanupRules',
    'FallbackSelectors',
    'LoggingConfig',
    'OutputConfig',

    # Logging
    'LoggingManager',
    'get_logger',
    'setup_logging',

    # Fetching
    'Retriever',
    'DynamicRenderer'
]
