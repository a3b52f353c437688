"""
Query path for the forwarder.

Queries are executed and their result reader is always released, but rows
are not mapped back to Records yet; _materialize is the place to do that.
"""

import logging
from typing import List

from ..core.exceptions import QueryNotInitializedError, QueryExecutionError
from ..schema.models import Record
from ..store.connection import ConnectionManager

LOG = logging.getLogger(__name__)


class QueryReader:
    """Executes caller-supplied query text through the connection manager."""

    def __init__(self, connection: ConnectionManager):
        self.connection = connection

    def query(self, query_text: str) -> List[Record]:
        """
        Execute query_text against the bucket.

        Returns:
            Records materialized from the result (currently always empty)

        Raises:
            QueryNotInitializedError: not connected
            QueryExecutionError: the store rejected or failed the query
        """
        query_handle = self.connection.query_handle
        if query_handle is None:
            raise QueryNotInitializedError("queryAPI is not initialized")

        try:
            result = query_handle.execute(query_text)
        except Exception as e:
            raise QueryExecutionError(f"failed to execute query: {e}") from e

        try:
            return self._materialize(result)
        finally:
            result.close()

    def _materialize(self, result) -> List[Record]:
        LOG.debug(f"Query result not materialized: {type(result).__name__}")
        return []
