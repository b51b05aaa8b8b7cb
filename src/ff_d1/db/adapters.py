"""
Execution backends for D1 statements.

D1Database / D1PreparedStatement describe the client interface the
statement builder delegates to (prepare -> bind -> all/run). Two
implementations are provided:
- SQLiteD1Database: local SQLite file or memory database via aiosqlite
- HttpD1Database: Cloudflare D1 REST API via httpx
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import aiosqlite
import httpx

from ..config import D1Config
from ..exceptions import D1QueryError
from .results import D1Meta, D1Result


class D1PreparedStatement(ABC):
    """
    A SQL statement plus the values bound to its numbered placeholders.

    Statements are immutable: bind() returns a new statement.
    """

    def __init__(self, database: "D1Database", query: str, params: Sequence[Any] = ()):
        self.database = database
        self.query = query
        self.params = tuple(params)

    def bind(self, *values: Any) -> "D1PreparedStatement":
        """Return a copy of this statement bound to values (?1 -> values[0], ...)."""
        return self.__class__(self.database, self.query, values)

    @abstractmethod
    async def all(self) -> D1Result:
        """Execute and return every matching row."""
        pass

    @abstractmethod
    async def run(self) -> D1Result:
        """Execute a write and return success, meta and any RETURNING rows."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(query={self.query!r}, params={len(self.params)})"


class D1Database(ABC):
    """Abstract D1 client."""

    @abstractmethod
    def prepare(self, query: str) -> D1PreparedStatement:
        """Prepare a statement for binding and execution."""
        pass


# ==================== SQLite ====================


class SQLitePreparedStatement(D1PreparedStatement):
    """Prepared statement executed through aiosqlite."""

    database: "SQLiteD1Database"

    async def all(self) -> D1Result:
        return await self.database.execute(self.query, self.params, commit=False)

    async def run(self) -> D1Result:
        return await self.database.execute(self.query, self.params, commit=True)


class SQLiteD1Database(D1Database):
    """
    D1-compatible client backed by SQLite.

    SQLite understands ?NNN placeholders natively, so statements are executed
    exactly as rendered.

    Usage:
        async with SQLiteD1Database(":memory:") as db:
            client = D1Client(db)
            await client.create("users", {"name": "john"})
    """

    def __init__(self, path: str = ":memory:"):
        self.path = path
        self.connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()

    async def connect(self) -> "SQLiteD1Database":
        """Open the underlying connection (idempotent)."""
        async with self._connect_lock:
            if self.connection is None:
                connection = await aiosqlite.connect(self.path)
                connection.row_factory = aiosqlite.Row
                self.connection = connection
        return self

    async def close(self) -> None:
        """Close the underlying connection."""
        async with self._lock, self._connect_lock:
            if self.connection is not None:
                await self.connection.close()
                self.connection = None

    async def __aenter__(self) -> "SQLiteD1Database":
        return await self.connect()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def prepare(self, query: str) -> SQLitePreparedStatement:
        return SQLitePreparedStatement(self, query)

    async def execute(
        self, query: str, params: Sequence[Any] = (), commit: bool = True
    ) -> D1Result:
        """
        Execute a statement and build a D1Result.

        Args:
            query: SQL with ?NNN placeholders
            params: Values for the placeholders, in order
            commit: Commit after execution (writes); rolled back on error

        Returns:
            D1Result with rows as dicts and execution metadata
        """
        await self.connect()

        async with self._lock:
            changes_before = self.connection.total_changes
            start = time.perf_counter()
            try:
                async with self.connection.execute(query, list(params)) as cursor:
                    rows = await cursor.fetchall()
                    last_row_id = cursor.lastrowid
                if commit:
                    await self.connection.commit()
            except Exception:
                if commit:
                    await self.connection.rollback()
                raise
            duration = (time.perf_counter() - start) * 1000
            changes = self.connection.total_changes - changes_before

        return D1Result(
            results=[dict(row) for row in rows],
            success=True,
            meta=D1Meta(
                duration=duration,
                changes=changes,
                last_row_id=last_row_id,
                rows_read=len(rows),
                rows_written=changes,
                changed_db=changes > 0,
            ),
        )


# ==================== HTTP ====================


class HttpPreparedStatement(D1PreparedStatement):
    """Prepared statement sent to the D1 REST API."""

    database: "HttpD1Database"

    async def all(self) -> D1Result:
        return await self.database.query(self.query, self.params)

    async def run(self) -> D1Result:
        return await self.database.query(self.query, self.params)


class HttpD1Database(D1Database):
    """
    D1 client that talks to the Cloudflare REST API.

    Each statement is one POST to /accounts/{account}/d1/database/{db}/query.
    """

    def __init__(self, config: D1Config, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpD1Database":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def prepare(self, query: str) -> HttpPreparedStatement:
        return HttpPreparedStatement(self, query)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_token}",
            "Content-Type": "application/json",
        }

    async def query(self, query: str, params: Sequence[Any] = ()) -> D1Result:
        """
        Execute one statement through the API.

        Raises:
            D1QueryError: If the API reports success=false
            httpx.HTTPError: On transport failures or non-JSON error responses
        """
        client = await self._get_client()
        response = await client.post(
            self.config.query_url,
            json={"sql": query, "params": list(params)},
            headers=self._headers(),
        )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            response.raise_for_status()
            raise D1QueryError("D1 API returned a response that is not a JSON object", sql=query)

        if not payload.get("success", False):
            errors: List[Dict[str, Any]] = payload.get("errors") or []
            message = "; ".join(str(err.get("message", err)) for err in errors) or (
                f"D1 query failed with HTTP {response.status_code}"
            )
            raise D1QueryError(message, errors=errors, sql=query)

        results = payload.get("result") or [{}]
        return D1Result.model_validate(results[0])
