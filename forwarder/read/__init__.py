"""
Read side of the forwarder: pipeline record input and store queries.
"""
from .json_reader import JsonReader
from .query_reader import QueryReader

# Export key components for easier imports
__all__ = [
    'JsonReader',
    'QueryReader'
]
