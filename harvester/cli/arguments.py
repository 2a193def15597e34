"""
Command Line Argument Parsing for Site Content Harvester

Handles command line arguments for site/source selection, output location,
and configuration overrides.
"""

import argparse
from pathlib import Path
from typing import List, Optional, Dict, Any

from harvester import __version__
from harvester.core.base import SiteSpec


class CLIManager:
    """
    Command line interface manager for the harvester

    Handles command line arguments for site and source selection and
    configuration overrides. Provides validation and help documentation.
    """

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all options

        Returns:
            Configured argument parser
        """
        parser = argparse.ArgumentParser(
            prog="harvester",
            description="Site content harvester: extracts articles and guides into Markdown records",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
            epilog=self._get_epilog()
        )

        # Target selection
        target_group = parser.add_argument_group("Targets")
        target_group.add_argument(
            "--site",
            action="append",
            dest="sites",
            metavar="NAME",
            help="Site to harvest (repeatable; default: every configured site)"
        )
        target_group.add_argument(
            "--source",
            action="append",
            dest="sources",
            metavar="NAME",
            help="Restrict harvesting to the named sources (repeatable)"
        )
        target_group.add_argument(
            "--list-sites",
            action="store_true",
            help="List configured sites and their sources, then exit"
        )

        # Configuration options
        config_group = parser.add_argument_group("Configuration")
        config_group.add_argument(
            "--config",
            help="Path to YAML or JSON configuration file (built-in defaults when omitted)"
        )
        config_group.add_argument(
            "--output",
            help="Output JSON file path"
        )
        config_group.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Logging level"
        )

        # Processing options
        processing_group = parser.add_argument_group("Processing")
        processing_group.add_argument(
            "--no-markdown",
            action="store_true",
            help="Keep cleaned HTML instead of converting content to Markdown"
        )
        processing_group.add_argument(
            "--with-context",
            action="store_true",
            help="Prepend byline and source lines to converted content"
        )

        # Request options
        request_group = parser.add_argument_group("Requests")
        request_group.add_argument(
            "--max-attempts",
            type=int,
            help="Fetch attempts per URL"
        )
        request_group.add_argument(
            "--timeout",
            type=float,
            help="Request timeout in seconds"
        )
        request_group.add_argument(
            "--politeness-delay",
            type=float,
            help="Delay in seconds between item fetches"
        )

        # Version and examples
        parser.add_argument(
            "--version",
            action="version",
            version=f"Site Content Harvester v{__version__}"
        )

        parser.add_argument(
            "--examples",
            action="store_true",
            help="Show usage examples and exit"
        )

        return parser

    def _get_epilog(self) -> str:
        """
        Get epilog text for help message

        Returns:
            Formatted epilog text
        """
        return """
Examples:
  # Harvest every built-in site
  python -m harvester

  # Harvest one site into a custom file
  python -m harvester --site nilmamano.com --output ./data/nil.json

  # Harvest selected sources with a custom configuration
  python -m harvester --config my_sites.yaml --site interviewing.io --source blog

  # Faster, less polite run with byline headers
  python -m harvester --politeness-delay 0.2 --with-context

Notes:
  - Output is a JSON list of {title, content, content_type, source_url, author, user_id}
  - Sources marked requires_render are fetched through a headless browser
  - Environment variables HARVESTER_* override configuration file values
"""

    def parse_arguments(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        """
        Parse command line arguments

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        parsed_args = self.parser.parse_args(args)
        self.validate_arguments(parsed_args)
        return parsed_args

    def validate_arguments(self, args: argparse.Namespace) -> bool:
        """
        Validate parsed arguments for consistency

        Args:
            args: Parsed arguments namespace

        Returns:
            True if arguments are valid
        """
        if args.config and not Path(args.config).is_file():
            self.parser.error(f"Configuration file not found: {args.config}")

        if args.max_attempts is not None and args.max_attempts < 1:
            self.parser.error("Maximum attempts must be at least 1")

        if args.timeout is not None and args.timeout <= 0:
            self.parser.error("Timeout must be greater than 0")

        if args.politeness_delay is not None and args.politeness_delay < 0:
            self.parser.error("Politeness delay must be non-negative")

        return True

    def apply_overrides(self, args: argparse.Namespace, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply command line overrides to a loaded configuration dictionary

        Args:
            args: Parsed arguments namespace
            config_data: Configuration dictionary (modified in place)

        Returns:
            The updated configuration dictionary
        """
        request = config_data.setdefault('request', {})
        if args.max_attempts is not None:
            request['max_attempts'] = args.max_attempts
        if args.timeout is not None:
            request['timeout'] = args.timeout
        if args.politeness_delay is not None:
            request['politeness_delay'] = args.politeness_delay

        processing = config_data.setdefault('processing', {})
        if args.no_markdown:
            processing['convert_to_markdown'] = False
        if args.with_context:
            processing['include_context'] = True

        if args.output:
            output_path = Path(args.output)
            output = config_data.setdefault('output', {})
            output['dir'] = str(output_path.parent)
            output['filename'] = output_path.name

        if args.log_level:
            config_data.setdefault('logging', {})['level'] = args.log_level

        return config_data

    def select_sites(self, args: argparse.Namespace, sites: List[SiteSpec]) -> List[SiteSpec]:
        """
        Narrow configured sites to those named by --source

        Args:
            args: Parsed arguments namespace
            sites: Sites already narrowed by --site

        Returns:
            Sites whose sources are restricted to the requested ones
        """
        if not args.sources:
            return sites

        wanted = set(args.sources)
        selected = []
        for site in sites:
            sources = tuple(source for source in site.sources if source.name in wanted)
            if sources:
                selected.append(SiteSpec(name=site.name, base_url=site.base_url, sources=sources))
        return selected

    def print_help(self) -> None:
        """Print help message"""
        self.parser.print_help()

    def get_usage_examples(self) -> str:
        """
        Get usage examples for documentation

        Returns:
            Formatted usage examples
        """
        return self._get_epilog()

    def print_sites(self, sites: List[SiteSpec]) -> None:
        """
        Print configured sites and their sources
        """
        print("\nConfigured sites:")
        for site in sites:
            print(f"- {site.name} ({site.base_url})")
            for source in site.sources:
                render = " [render]" if source.requires_render else ""
                print(f"    {source.name}: {source.url}{render}")
