"""
Utilities for Site Content Harvester
"""

from harvester.utils.component_factory import create_and_register_components, create_orchestrator

__all__ = ['create_and_register_components', 'create_orchestrator']
