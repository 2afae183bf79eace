"""Database management for formletter."""

from .clusters import ClusterStore
from .comments import CommentLoader
from .connection import build_conninfo, get_connection, get_connection_pool
from .init import SCHEMA_SQL, init_database, validate_connection

__all__ = [
    "ClusterStore",
    "CommentLoader",
    "SCHEMA_SQL",
    "build_conninfo",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
