"""
JSON Output Writer Implementation

Persists extracted records as JSON files in the configured output directory.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional

import aiofiles

from harvester.core.base import ExtractedRecord, OutputWriterInterface, StorageError
from harvester.core.config import OutputConfig, _from_dict
from harvester.core.logging import get_logger


class JsonOutputWriter(OutputWriterInterface):
    """
    Writes record lists to JSON files
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self.logger = get_logger()
        self.output_config: OutputConfig = _from_dict(OutputConfig, self.config.get('output'))
        self.output_dir = Path(self.output_config.dir)
        self.files_written: List[str] = []
        self.records_written = 0

    async def initialize(self) -> None:
        """Initialize the component"""
        self.logger.info("Initializing JSON output writer")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._initialized = True

    async def cleanup(self) -> None:
        """Clean up resources"""
        self.logger.info("Cleaning up JSON output writer")

    async def save_records(self, records: List[ExtractedRecord], filename: Optional[str] = None) -> str:
        """
        Save records to the output file

        Args:
            records: Records to save
            filename: File name inside the output directory (defaults to the configured one)

        Returns:
            Path of the written file
        """
        path = self.output_dir / (filename or self.output_config.filename)
        indent = 2 if self.output_config.pretty_print else None
        payload = json.dumps([record.to_dict() for record in records], indent=indent, ensure_ascii=False)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'w', encoding='utf-8') as f:
                await f.write(payload)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

        self.files_written.append(str(path))
        self.records_written += len(records)
        self.logger.info(f"Saved {len(records)} records to {path}")
        return str(path)

    def get_storage_stats(self) -> Dict[str, Any]:
        """
        Get storage statistics

        Returns:
            Storage statistics
        """
        existing = sorted(self.output_dir.glob('*.json')) if self.output_dir.exists() else []
        return {
            'output_dir': str(self.output_dir),
            'files_written': list(self.files_written),
            'records_written': self.records_written,
            'json_files': len(existing),
        }

