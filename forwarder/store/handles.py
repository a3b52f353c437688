"""
Write and query handles over an InfluxDB 3.x client.

Note: the batching setup follows batching_example.py from the https://github.com/InfluxCommunity/influxdb3-python project
License: Apache License, Version 2.0, January 2004 (http://www.apache.org/licenses/)
"""

import logging
import time
from typing import Dict, Any

from influxdb_client_3 import WriteOptions, write_client_options
from influxdb_client_3.exceptions.exceptions import InfluxDBError

from ..core.config import InfluxDBConfig
from ..schema.models import Point

LOG = logging.getLogger(__name__)


class BatchingCallback(object):
    """
    Callback handler for batched InfluxDB writes.

    Tracks write success/failure statistics reported by the client's
    background delivery worker.
    """

    def __init__(self):
        self.write_status_msg = None
        self.write_count = 0
        self.error_count = 0
        self.retry_count = 0
        self.start = time.time_ns()

    def success(self, conf, data: str):
        """Called when a batch write succeeds."""
        self.write_count += 1
        self.write_status_msg = f"SUCCESS: {self.write_count} batches written"
        LOG.debug(f"Batch write successful: {len(data)} bytes")

    def error(self, conf, data: str, exception: InfluxDBError):
        """Called when a batch write fails permanently."""
        self.error_count += 1
        self.write_status_msg = f"FAILURE: {exception}"
        LOG.error(f"Batch write failed: {len(data)} bytes, error: {exception}")

    def retry(self, conf, data: str, exception: InfluxDBError):
        """Called when a batch write fails but will be retried."""
        self.retry_count += 1
        LOG.warning(f"Batch write retry {self.retry_count}: {len(data)} bytes, error: {exception}")

    def elapsed_ms(self) -> int:
        return (time.time_ns() - self.start) // 1_000_000

    def get_stats(self) -> Dict[str, Any]:
        """Get write statistics."""
        return {
            'writes': self.write_count,
            'errors': self.error_count,
            'retries': self.retry_count,
            'elapsed_ms': self.elapsed_ms(),
            'status': self.write_status_msg
        }


def build_client_kwargs(config: InfluxDBConfig, callback: BatchingCallback) -> Dict[str, Any]:
    """Keyword arguments for InfluxDBClient3, with the write tuning applied."""
    tuning = config.tuning
    write_options = WriteOptions(
        batch_size=tuning.batch_size,
        flush_interval=tuning.flush_interval,
        retry_interval=tuning.retry_interval,
        max_retries=tuning.max_retries,
    )

    wco = write_client_options(
        success_callback=callback.success,
        error_callback=callback.error,
        retry_callback=callback.retry,
        write_options=write_options
    )

    client_kwargs = {
        'host': config.url,
        'token': config.token,
        'org': config.org,
        'database': config.bucket,
        'write_client_options': wco,
        'verify_ssl': config.verify_ssl,
        'write_timeout': config.timeout_ms,
        'query_timeout': config.timeout_ms
    }
    if config.tls_ca:
        client_kwargs['ssl_ca_cert'] = config.tls_ca
    return client_kwargs


class WriteHandle:
    """Submits points to the client's buffered writer and flushes it on request."""

    def __init__(self, client, bucket: str):
        self._client = client
        self.bucket = bucket

    def submit(self, point: Point) -> None:
        self._client.write(record=point.to_influx(), database=self.bucket)

    def flush(self) -> None:
        """Hand whatever is buffered to the delivery worker."""
        self._client.flush()


class QueryHandle:
    """Runs query text against the configured bucket."""

    def __init__(self, client, bucket: str, language: str = 'sql'):
        self._client = client
        self.bucket = bucket
        self.language = language

    def execute(self, query_text: str):
        """Execute query_text and return a streaming reader; the caller must close it."""
        return self._client.query(
            query=query_text,
            language=self.language,
            mode='reader',
            database=self.bucket
        )
