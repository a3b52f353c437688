"""Client facade bundling connection, writer and query reader for one InfluxDB target."""

import logging
from typing import Callable, List, Optional

from influxdb_client_3 import InfluxDBClient3

from .core.config import InfluxDBConfig, WriteTuning
from .read.query_reader import QueryReader
from .schema.models import Record, Point
from .store.connection import ConnectionManager
from .writer.influxdb_writer import InfluxDBWriter

LOG = logging.getLogger(__name__)


class ForwarderClient:
    """
    One connection to InfluxDB plus the tag-and-route writer and query reader using it.

    connect/disconnect must not be called concurrently; write may be.
    """

    def __init__(self, config: InfluxDBConfig,
                 client_factory: Callable[..., InfluxDBClient3] = InfluxDBClient3):
        self.config = config
        self.connection = ConnectionManager(config, client_factory=client_factory)
        self.writer = InfluxDBWriter(self.connection)
        self.reader = QueryReader(self.connection)

    @classmethod
    def from_config(cls, config: InfluxDBConfig, **kwargs) -> 'ForwarderClient':
        return cls(config, **kwargs)

    def connect(self) -> None:
        self.connection.connect()

    def disconnect(self) -> None:
        self.connection.disconnect()

    def is_connected(self) -> bool:
        return self.connection.is_connected()

    def write(self, record: Record) -> List[Point]:
        return self.writer.write(record)

    def write_many(self, records) -> List[Point]:
        return self.writer.write_many(records)

    def query(self, query_text: str) -> List[Record]:
        return self.reader.query(query_text)

    def __enter__(self) -> 'ForwarderClient':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()


def create_client(url: str, token: str, org: str, bucket: str,
                  tuning: Optional[WriteTuning] = None, **kwargs) -> ForwarderClient:
    """
    Create a disconnected client for the given InfluxDB target.

    Extra keyword arguments go to InfluxDBConfig (timeout_ms, tls_ca, ...),
    except client_factory which is passed to the client itself.
    """
    client_factory = kwargs.pop('client_factory', InfluxDBClient3)
    config = InfluxDBConfig(url=url, token=token, org=org, bucket=bucket,
                            tuning=tuning or WriteTuning(), **kwargs)
    LOG.debug(f"Creating forwarder client: {config.to_dict()}")
    return ForwarderClient(config, client_factory=client_factory)
