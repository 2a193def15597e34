"""
Command Line Interface for Site Content Harvester

This package provides command line argument parsing and validation
for the harvester. It handles site/source selection, output location
and configuration overrides.

Classes:
    CLIManager: Command line interface manager for the harvester
"""

from harvester.cli.arguments import CLIManager

__all__ = ['CLIManager']
