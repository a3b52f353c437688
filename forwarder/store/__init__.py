"""Connection management and store handles for InfluxDB."""

from .connection import ConnectionManager, ConnectionState
from .handles import BatchingCallback, WriteHandle, QueryHandle

__all__ = ['ConnectionManager', 'ConnectionState', 'BatchingCallback', 'WriteHandle', 'QueryHandle']
