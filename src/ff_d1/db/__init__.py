"""
Statement building and execution modules.
"""

from .adapters import (
    D1Database,
    D1PreparedStatement,
    HttpD1Database,
    SQLiteD1Database,
)
from .client import D1Client
from .query_builder import (
    CURRENT_TIMESTAMP,
    IS_NULL,
    CurrentTimestamp,
    IsNull,
    QueryBuilder,
    Statement,
)
from .results import D1Meta, D1Result

__all__ = [
    "D1Client",
    # Builder
    "QueryBuilder",
    "Statement",
    "CURRENT_TIMESTAMP",
    "IS_NULL",
    "CurrentTimestamp",
    "IsNull",
    # Backends
    "D1Database",
    "D1PreparedStatement",
    "SQLiteD1Database",
    "HttpD1Database",
    # Results
    "D1Result",
    "D1Meta",
]
