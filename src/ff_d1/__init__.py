"""
ff-d1: Parameterized fetch/create/update/remove statements for Cloudflare D1.

Features:
- Numbered placeholders (?1, ?2, ...) bound in mapping order
- IS NULL conditions and CURRENT_TIMESTAMP updates as explicit markers
- Soft remove through a deletion timestamp column
- SQLite (aiosqlite) and D1 REST API (httpx) backends
"""

# Version is read from package metadata (pyproject.toml is the single source of truth)
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ff-d1")
except PackageNotFoundError:
    __version__ = "0.1.0"

from .config import D1Config
from .db import (
    CURRENT_TIMESTAMP,
    IS_NULL,
    D1Client,
    D1Database,
    D1Meta,
    D1PreparedStatement,
    D1Result,
    HttpD1Database,
    QueryBuilder,
    SQLiteD1Database,
    Statement,
)
from .exceptions import ConfigurationError, D1QueryError, FFD1Error, InvalidArgument

__all__ = [
    # Version
    "__version__",
    # Operations
    "D1Client",
    "QueryBuilder",
    "Statement",
    "CURRENT_TIMESTAMP",
    "IS_NULL",
    # Backends
    "D1Database",
    "D1PreparedStatement",
    "SQLiteD1Database",
    "HttpD1Database",
    "D1Config",
    "D1Result",
    "D1Meta",
    # Exceptions
    "FFD1Error",
    "InvalidArgument",
    "ConfigurationError",
    "D1QueryError",
]
