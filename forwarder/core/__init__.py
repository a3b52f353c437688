"""Core forwarder package initialization."""

from .config import InfluxDBConfig, WriteTuning
from .logging_config import LoggingConfigurator
from .exceptions import (
    ForwarderError, ConnectionError, UninitializedHandleError,
    QueryNotInitializedError, QueryExecutionError, WriteError, InputError
)

__all__ = ['InfluxDBConfig', 'WriteTuning', 'LoggingConfigurator',
           'ForwarderError', 'ConnectionError', 'UninitializedHandleError',
           'QueryNotInitializedError', 'QueryExecutionError', 'WriteError', 'InputError']
