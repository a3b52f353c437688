"""
InfluxDB writer for the forwarder.

Tags each record, routes it to the Original and/or Processed measurement
according to its stage and flushes after every record.
"""

import logging
from typing import Dict, Any, List

from .base import Writer
from ..core.exceptions import UninitializedHandleError, WriteError
from ..schema.models import Record, Point, Stage, Measurement
from ..schema.tags import build_tag_set
from ..store.connection import ConnectionManager

LOG = logging.getLogger(__name__)

# Measurements receiving a record, by stage
ROUTES = {
    Stage.PRE: [Measurement.ORIGINAL],
    Stage.POST: [Measurement.PROCESSED],
    Stage.UNSPECIFIED: [Measurement.ORIGINAL, Measurement.PROCESSED],
}


def format_record_line(record: Record) -> str:
    """gateway :: customer :: site :: controller :: controllerIdentifier :: deviceType :: deviceIdentifier :: deviceName"""
    return " :: ".join([
        record.gateway,
        record.customer_name,
        record.site_name,
        record.controller,
        record.controller_identifier,
        record.device_type,
        record.device_identifier,
        record.device_name,
    ])


class InfluxDBWriter(Writer):
    """
    Writer implementation for InfluxDB.

    Never holds its own client; it asks the connection manager for the
    current write handle on every call.
    """

    def __init__(self, connection: ConnectionManager):
        self.connection = connection

    def write(self, record: Record) -> List[Point]:
        """
        Write a record as one point (Pre, Post) or two points (anything else).

        Raises:
            UninitializedHandleError: not connected
            WriteError: the store client failed to accept or flush the points
        """
        write_handle = self.connection.write_handle
        if write_handle is None:
            raise UninitializedHandleError("writeAPI is not initialized")

        tags = build_tag_set(record)
        stage = Stage.parse(record.stage)
        points = [
            Point(measurement, dict(tags), dict(record.fields), record.timestamp)
            for measurement in ROUTES[stage]
        ]

        try:
            for point in points:
                write_handle.submit(point)
        except Exception as e:
            raise WriteError(f"failed to submit point: {e}") from e

        if stage is Stage.PRE:
            self._log_debug(record)
        else:
            self._log_info(record)
            self._log_debug(record)

        try:
            write_handle.flush()
        except Exception as e:
            raise WriteError(f"failed to flush InfluxDB write buffer: {e}") from e

        return points

    def get_batch_stats(self) -> Dict[str, Any]:
        """Delivery statistics reported by the client's batching worker."""
        return self.connection.batch_callback.get_stats()

    def close(self) -> None:
        self.connection.disconnect()

    def _log_info(self, record: Record) -> None:
        LOG.info(format_record_line(record))

    def _log_debug(self, record: Record) -> None:
        message = format_record_line(record)
        # Raw value so that an unrecognised stage still shows up
        stage = record.stage.value if isinstance(record.stage, Stage) else record.stage
        if stage:
            message = f"{message} :: {stage}"
        LOG.debug(message, extra={'data': record.fields})
