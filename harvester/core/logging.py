"""
Logging System for Site Content Harvester

Provides logging with file rotation and console output, plus helpers for
per-source results and the end-of-run summary.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
import json


LOGGER_NAME = 'harvester'


class LoggingManager:
    """
    Centralized logging manager with file rotation and structured logging
    """

    def __init__(self):
        self.logger: Optional[logging.Logger] = None
        self.file_handler: Optional[logging.handlers.RotatingFileHandler] = None
        self.console_handler: Optional[logging.StreamHandler] = None
        self._setup_complete = False

    def setup_logging(self, level: str = "INFO", log_file: str = "./logs/harvester.log",
                      max_size: str = "10MB", backup_count: int = 5) -> None:
        """
        Set up logging system with file rotation and console output

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Path to log file
            max_size: Maximum size before rotation (e.g., "10MB")
            backup_count: Number of backup files to keep
        """
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        max_bytes = self._parse_size(max_size)

        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(getattr(logging, level.upper()))

        # Re-running setup replaces handlers instead of stacking them
        self.close()
        self.logger.handlers.clear()

        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        console_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        self.file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        self.file_handler.setLevel(logging.DEBUG)
        self.file_handler.setFormatter(detailed_formatter)
        self.logger.addHandler(self.file_handler)

        self.console_handler = logging.StreamHandler(sys.stdout)
        self.console_handler.setLevel(getattr(logging, level.upper()))
        self.console_handler.setFormatter(console_formatter)
        self.logger.addHandler(self.console_handler)

        self._setup_complete = True
        self.logger.info("Logging system initialized")

    def _parse_size(self, size_str: str) -> int:
        """Parse size string like '10MB' to bytes"""
        size_str = size_str.upper().strip()

        if size_str.endswith('KB'):
            return int(size_str[:-2]) * 1024
        elif size_str.endswith('MB'):
            return int(size_str[:-2]) * 1024 * 1024
        elif size_str.endswith('GB'):
            return int(size_str[:-2]) * 1024 * 1024 * 1024
        else:
            return int(size_str)

    def get_logger(self) -> logging.Logger:
        """Get the configured logger, or the bare package logger before setup"""
        if not self._setup_complete or not self.logger:
            return logging.getLogger(LOGGER_NAME)
        return self.logger

    def log_source_result(self, source_name: str, records: int, links: int,
                          processing_time: float, error_message: Optional[str] = None) -> None:
        """Log the outcome of one source run"""
        logger = self.get_logger()
        if error_message:
            logger.error(f"Failed to scrape source {source_name} after {processing_time:.2f}s: {error_message}")
        else:
            logger.info(
                f"Successfully scraped {records}/{links} pages from {source_name} in {processing_time:.2f}s"
            )

    def log_warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log a warning with optional context"""
        context_str = ""
        if context:
            context_str = f" | Context: {json.dumps(context, default=str)}"

        self.get_logger().warning(f"{message}{context_str}")

    def generate_summary_report(self, stats: Dict[str, Any]) -> str:
        """Generate and log a summary report for a harvesting run"""
        report_lines = [
            "=" * 60,
            "HARVEST SUMMARY",
            "=" * 60,
            f"Sources: {stats.get('sources', 0)} "
            f"({stats.get('sources_failed', 0)} failed)",
            f"Links Found: {stats.get('links_found', 0)}",
            f"Records Produced: {stats.get('records', 0)}",
            f"Items Skipped: {stats.get('items_skipped', 0)}",
            f"Items Failed: {stats.get('items_failed', 0)}",
            f"Elapsed Time: {stats.get('elapsed_time', 0.0):.2f}s",
        ]

        per_source = stats.get('per_source', {})
        if per_source:
            report_lines.extend(["", "PER SOURCE:"])
            for name, count in per_source.items():
                report_lines.append(f"  {name}: {count} records")

        errors = stats.get('errors', [])
        if errors:
            report_lines.extend(["", "ERRORS ENCOUNTERED:"])
            for error in errors[:10]:
                report_lines.append(f"  - {error}")
            if len(errors) > 10:
                report_lines.append(f"  ... and {len(errors) - 10} more errors")

        report_lines.append("=" * 60)

        report = "\n".join(report_lines)
        self.get_logger().info(f"Harvest Summary:\n{report}")

        return report

    def close(self) -> None:
        """Close logging handlers"""
        if self.file_handler:
            self.file_handler.close()
        if self.console_handler:
            self.console_handler.close()


# Global logging manager instance
logging_manager = LoggingManager()


def get_logger() -> logging.Logger:
    """Get the global logger instance"""
    return logging_manager.get_logger()


def setup_logging(level: str = "INFO", log_file: str = "./logs/harvester.log",
                  max_size: str = "10MB", backup_count: int = 5) -> None:
    """Set up global logging system"""
    logging_manager.setup_logging(level, log_file, max_size, backup_count)
