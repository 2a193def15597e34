"""
Storage components for Site Content Harvester

This package contains the JSON output writer used to persist extracted records.
"""

from .json_storage import JsonOutputWriter

__all__ = ['JsonOutputWriter']
