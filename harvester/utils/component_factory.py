"""
Component Factory for Site Content Harvester

This module provides functions to create and register components with the orchestrator.
"""

from typing import Dict, Any

from harvester.core.orchestrator import PipelineOrchestrator
from harvester.core.renderer import DynamicRenderer
from harvester.core.retriever import Retriever
from harvester.processors.cleaner import ContentCleaner
from harvester.processors.fields import FieldExtractor
from harvester.processors.links import LinkResolver
from harvester.processors.markdown import MarkdownConverter
from harvester.storage.json_storage import JsonOutputWriter


def create_and_register_components(orchestrator: PipelineOrchestrator, config: Dict[str, Any]) -> None:
    """
    Create and register all components with the orchestrator.

    Args:
        orchestrator: The orchestrator to register components with
        config: Configuration dictionary
    """
    orchestrator.register_component("retriever", Retriever(config))

    # The browser only starts when a requires_render source is fetched
    orchestrator.register_component("renderer", DynamicRenderer(config))

    orchestrator.register_component("link_resolver", LinkResolver(config))

    cleaner = ContentCleaner(config)
    orchestrator.register_component("cleaner", cleaner)
    orchestrator.register_component("field_extractor", FieldExtractor(config, cleaner=cleaner))

    orchestrator.register_component("markdown_converter", MarkdownConverter(config))
    orchestrator.register_component("output_writer", JsonOutputWriter(config))


def create_orchestrator(config: Dict[str, Any]) -> PipelineOrchestrator:
    """Build an orchestrator with the default components registered"""
    orchestrator = PipelineOrchestrator(config)
    create_and_register_components(orchestrator, config)
    return orchestrator
