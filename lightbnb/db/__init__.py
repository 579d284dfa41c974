"""Database access layer (DAL) for LightBnB.

This sub-package encapsulates low-level DB interactions so that callers only
deal with models, search criteria and query results.
"""

from .connection import ConnectionPool, create_pool
from .executor import QueryExecutor, SQLiteExecutor
from .query_builder import Query, build_property_search
from .repositories import PropertyRepository, ReservationRepository, UserRepository
from .results import QueryExecutionError, QueryResult

__all__ = [
    "ConnectionPool",
    "create_pool",
    "QueryExecutor",
    "SQLiteExecutor",
    "Query",
    "build_property_search",
    "PropertyRepository",
    "ReservationRepository",
    "UserRepository",
    "QueryExecutionError",
    "QueryResult",
]
