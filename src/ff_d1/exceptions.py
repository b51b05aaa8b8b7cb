"""
Exception hierarchy for ff-d1.

Input problems are reported as InvalidArgument before any SQL is rendered.
Errors raised by a backend are never wrapped; D1QueryError is what the
HTTP backend itself raises when the D1 API reports a failed query.
"""

from typing import Any, Dict, List, Optional


class FFD1Error(Exception):
    """Base exception for all ff-d1 errors."""


class InvalidArgument(FFD1Error, ValueError):
    """Raised when a table name, mapping or field list is malformed."""


class ConfigurationError(FFD1Error):
    """Raised when D1 connection settings are missing or invalid."""


class D1QueryError(FFD1Error):
    """
    Raised by the HTTP backend when the D1 API answers with success=false.

    Attributes:
        errors: Error objects returned by the API ({"code": ..., "message": ...})
        sql: The statement that was sent
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        sql: Optional[str] = None,
    ):
        super().__init__(message)
        self.errors = errors or []
        self.sql = sql
