"""Error types raised by the forwarder.

Everything raised from the store client is wrapped in one of these with the
original exception chained as ``__cause__``.
"""

import builtins


class ForwarderError(Exception):
    """Base class for all forwarder errors."""


class ConnectionError(ForwarderError, builtins.ConnectionError):
    """Connecting to InfluxDB failed (unreachable, ping or validation query failed).

    The connection manager is always back in the disconnected state when this
    is raised, so the caller may simply retry.
    """


class UninitializedHandleError(ForwarderError):
    """A write or query was attempted without a live connection."""


class QueryNotInitializedError(UninitializedHandleError):
    """The query handle is not available (connect() has not succeeded)."""


class QueryExecutionError(ForwarderError):
    """InfluxDB rejected the query or failed to execute it."""


class WriteError(ForwarderError):
    """The store client failed while accepting or flushing points."""


class InputError(ForwarderError):
    """The record input file could not be read."""
