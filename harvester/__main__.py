#!/usr/bin/env python3
"""
Site Content Harvester - Main Entry Point

This module serves as the main entry point for the harvester application.
It loads the configuration, sets up logging, runs the pipeline over the
selected sites and writes the records to the output file.
"""

import sys
import asyncio
from typing import List, Optional

from harvester.core.base import ConfigurationError, StorageError
from harvester.core.config import ConfigManager
from harvester.core.logging import setup_logging, get_logger
from harvester.cli.arguments import CLIManager
from harvester.utils.component_factory import create_orchestrator


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the harvester"""
    # Parse command line arguments
    cli_manager = CLIManager()
    args = cli_manager.parse_arguments(argv)

    # Handle special flags
    if args.examples:
        print("\nSite Content Harvester - Usage Examples\n")
        print(cli_manager.get_usage_examples())
        return 0

    # Load configuration
    config_manager = ConfigManager(args.config)
    try:
        config = config_manager.load_config()
        cli_manager.apply_overrides(args, config)
        config_manager.refresh()
        config_manager.validate_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.list_sites:
        cli_manager.print_sites(config_manager.get_sites())
        return 0

    # Set up logging
    logging_config = config_manager.logging_config
    setup_logging(
        level=logging_config.level,
        log_file=logging_config.file,
        max_size=logging_config.max_size,
        backup_count=logging_config.backup_count
    )
    logger = get_logger()

    try:
        sites = cli_manager.select_sites(args, config_manager.get_sites(args.sites))
    except ConfigurationError as e:
        logger.error(f"Invalid site selection: {e}")
        return 1

    if not sites:
        logger.error("No sources to harvest. Use --list-sites to see what is configured")
        return 1

    logger.info(f"Harvesting {sum(len(site.sources) for site in sites)} sources from {len(sites)} sites")

    # Initialize and run the pipeline
    orchestrator = create_orchestrator(config)
    try:
        await orchestrator.initialize()
        records = await orchestrator.run(sites)
        orchestrator.generate_report()

        if records:
            path = await orchestrator.output_writer.save_records(records)
            logger.info(f"Wrote {len(records)} records to {path}")
        else:
            logger.warning("No records produced, nothing written")
    except StorageError as e:
        logger.error(f"Failed to save records: {e}")
        return 1
    finally:
        await orchestrator.cleanup()

    return 0 if records else 1


def run() -> None:
    """Console script entry point"""
    try:
        exit_code = asyncio.run(main())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nHarvester interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
