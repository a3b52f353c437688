"""Writer module for the InfluxDB forwarder.

Provides the tag-and-route writer for InfluxDB.
"""

from .base import Writer
from .influxdb_writer import InfluxDBWriter

__all__ = ['Writer', 'InfluxDBWriter']
