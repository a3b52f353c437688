"""Forwards pipeline telemetry records to InfluxDB, tagged and routed by stage."""

from .client import ForwarderClient, create_client
from .core.config import InfluxDBConfig, WriteTuning
from .schema.models import Record, Point, Stage, Measurement

__all__ = ['ForwarderClient', 'create_client', 'InfluxDBConfig', 'WriteTuning',
           'Record', 'Point', 'Stage', 'Measurement']
