"""
Connection lifecycle for the InfluxDB store.

The manager owns the single client instance and the write/query handles
derived from it. Nothing else holds a reference to the client.
"""

import logging
from enum import Enum
from typing import Callable, Optional

import requests
from influxdb_client_3 import InfluxDBClient3

from ..core.config import InfluxDBConfig
from ..core.exceptions import ConnectionError
from .handles import BatchingCallback, WriteHandle, QueryHandle, build_client_kwargs

LOG = logging.getLogger(__name__)


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager:
    """
    Owns one connection to InfluxDB.

    connect() only succeeds once the server answered a ping and a trivial
    validation query. Lifecycle calls are not thread-safe; serialize them.
    """

    def __init__(self, config: InfluxDBConfig,
                 client_factory: Callable[..., InfluxDBClient3] = InfluxDBClient3):
        self.config = config
        self.client_factory = client_factory
        self.batch_callback = BatchingCallback()

        self.state = ConnectionState.DISCONNECTED
        self._client = None
        self._write_handle: Optional[WriteHandle] = None
        self._query_handle: Optional[QueryHandle] = None

    @property
    def write_handle(self) -> Optional[WriteHandle]:
        return self._write_handle

    @property
    def query_handle(self) -> Optional[QueryHandle]:
        return self._query_handle

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def connect(self) -> None:
        """Connect to InfluxDB, verifying the server with a ping and a validation query.

        Raises:
            ConnectionError: client creation, ping or validation query failed.
                The manager is left disconnected.
        """
        LOG.info(f"Connecting to InfluxDB: url={self.config.url}, org={self.config.org}, bucket={self.config.bucket}")

        if self.is_connected():
            LOG.warning("InfluxDB client already connected")
            return

        self.state = ConnectionState.CONNECTING
        client = None
        try:
            client_kwargs = build_client_kwargs(self.config, self.batch_callback)
            client = self.client_factory(**client_kwargs)
            write_handle = WriteHandle(client, self.config.bucket)
            query_handle = QueryHandle(client, self.config.bucket, self.config.query_language)
        except Exception as e:
            self._abort(client)
            raise ConnectionError(f"failed to create InfluxDB client: {e}") from e

        try:
            self._ping()
        except Exception as e:
            self._abort(client)
            raise ConnectionError(f"failed to ping InfluxDB server: {e}") from e
        LOG.debug("Successfully pinged InfluxDB server")

        try:
            self._validate(query_handle)
        except Exception as e:
            self._abort(client)
            raise ConnectionError(f"failed to query InfluxDB server: {e}") from e

        # Handles only become visible once the server has been verified
        self._client = client
        self._write_handle = write_handle
        self._query_handle = query_handle
        self.state = ConnectionState.CONNECTED
        LOG.info("Connected to InfluxDB")

    def disconnect(self) -> None:
        """Close the connection and drop the write/query handles."""
        if not self.is_connected():
            LOG.warning("No connection to InfluxDB")
            return

        self._reset()
        LOG.info("Disconnected from InfluxDB")

    def _ping(self) -> None:
        """GET /ping on the server; any non-2xx answer is a failure."""
        headers = {'Authorization': f'Bearer {self.config.token}'}
        verify = self.config.tls_ca if self.config.tls_ca else self.config.verify_ssl
        response = requests.get(f"{self.config.url}/ping", headers=headers,
                                timeout=self.config.timeout_seconds, verify=verify)
        if not response.ok:
            raise RuntimeError(f"HTTP {response.status_code}: {response.text}")

    def _validate(self, query_handle: QueryHandle) -> None:
        """Run the validation query and release its result."""
        result = query_handle.execute(self.config.validation_query)
        result.close()

    def _abort(self, client) -> None:
        """Drop a client that never became the live connection."""
        self.state = ConnectionState.DISCONNECTED
        self._close_client(client)

    def _reset(self) -> None:
        """Close the client if there is one and clear all derived handles."""
        client = self._client
        self._client = None
        self._write_handle = None
        self._query_handle = None
        self.state = ConnectionState.DISCONNECTED
        self._close_client(client)

    @staticmethod
    def _close_client(client) -> None:
        if client is not None:
            try:
                client.close()
            except Exception as e:
                LOG.warning(f"Error while closing InfluxDB client: {e}")

    def __enter__(self) -> 'ConnectionManager':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()
