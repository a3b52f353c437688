"""
JSON reader for records produced by the ingestion pipeline.

Accepts three layouts:
    - a JSON array of record objects
    - a single record object
    - JSON lines, one record object per line

Record objects use the pipeline keys, e.g.

    {"state": "Post", "customerID": "...", "customerName": "Acme",
     "gateway": "gw1", "data": {"temp": 21.5}, "timestamp": "2024-05-01T12:00:00Z"}
"""
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Any, Union, TextIO

from ..core.exceptions import InputError
from ..schema.models import Record

logger = logging.getLogger(__name__)


class JsonReader:
    """Reads pipeline records from JSON files or streams."""

    @staticmethod
    def parse_text(text: str, source: str = '<text>') -> List[Dict[str, Any]]:
        """Parse JSON or JSON lines text into a list of objects."""
        stripped = text.strip()
        if not stripped:
            return []

        try:
            content = json.loads(stripped)
            if isinstance(content, list):
                return [item for item in content if isinstance(item, dict)]
            if isinstance(content, dict):
                return [content]
            logger.error(f"Unexpected JSON content in {source}: {type(content).__name__}")
            return []
        except json.JSONDecodeError:
            pass  # Not a single document, try JSON lines

        items = []
        for line_no, line in enumerate(stripped.splitlines(), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                item = json.loads(line)
            except json.JSONDecodeError as e:
                logger.error(f"Skipping malformed line {line_no} in {source}: {e}")
                continue
            if isinstance(item, dict):
                items.append(item)
            else:
                logger.warning(f"Skipping non-object line {line_no} in {source}")
        return items

    @staticmethod
    def read_file(filepath: Union[str, Path], strict: bool = False) -> List[Dict[str, Any]]:
        """
        Read a JSON/JSON lines file.

        Returns an empty list if the file can't be read, or raises InputError
        when strict is set.
        """
        filepath = Path(filepath)
        try:
            with open(filepath, 'r', encoding='utf-8') as file:
                return JsonReader.parse_text(file.read(), source=filepath.name)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {filepath}: {e}")
            if strict:
                raise InputError(f"cannot read {filepath}: {e}") from e
            return []

    @staticmethod
    def to_records(items: List[Dict[str, Any]]) -> List[Record]:
        """Convert parsed objects to Records, skipping the ones that don't fit."""
        records = []
        for index, item in enumerate(items):
            try:
                records.append(Record.from_dict(item))
            except (ValueError, TypeError) as e:
                logger.error(f"Error converting item {index} to Record: {e}")
        return records

    @staticmethod
    def read_records(source: Union[str, Path, TextIO]) -> List[Record]:
        """
        Read Records from a path, '-' for stdin, or an open text stream.

        Args:
            source: File path, '-' or a readable text stream

        Returns:
            The records that could be parsed

        Raises:
            InputError: source is a path that can't be read
        """
        if source == '-':
            items = JsonReader.parse_text(sys.stdin.read(), source='<stdin>')
        elif hasattr(source, 'read'):
            items = JsonReader.parse_text(source.read(), source=getattr(source, 'name', '<stream>'))
        else:
            items = JsonReader.read_file(source, strict=True)

        records = JsonReader.to_records(items)
        logger.info(f"Read {len(records)} records")
        return records
