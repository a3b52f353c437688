"""
Base writer interface for the InfluxDB forwarder.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from ..schema.models import Record, Point

# Initialize logger
LOG = logging.getLogger(__name__)


class Writer(ABC):
    """
    Base class for all writers.
    """

    @abstractmethod
    def write(self, record: Record) -> List[Point]:
        """
        Write one record to the destination.

        Args:
            record: Record to persist

        Returns:
            The points submitted for the record
        """
        pass

    def write_many(self, records: Iterable[Record]) -> List[Point]:
        """Write records in order; stops at the first failure."""
        points: List[Point] = []
        for record in records:
            points.extend(self.write(record))
        LOG.debug(f"Submitted {len(points)} points")
        return points

    def close(self) -> None:
        """
        Optional method to close the writer and clean up resources.
        Default implementation does nothing - override in subclasses that need cleanup.
        """
        pass
