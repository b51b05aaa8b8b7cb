"""
Statement builder for D1 / SQLite.

Renders fetch, create, update and delete statements from plain ordered
mappings:
- Numbered placeholders (?1, ?2, ...) bound in mapping order
- IS NULL conditions rendered inline, never bound
- CURRENT_TIMESTAMP sentinel rendered inline in UPDATE ... SET
- RETURNING * on INSERT
"""

from collections.abc import Iterable, Mapping
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple, Union

from ..exceptions import InvalidArgument


class CurrentTimestamp:
    """Entity value meaning "use the database clock" (update only)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CURRENT_TIMESTAMP"


class IsNull:
    """Condition value rendered as ``column IS NULL``."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "IS_NULL"


CURRENT_TIMESTAMP = CurrentTimestamp()
IS_NULL = IsNull()

Pairs = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class Statement(NamedTuple):
    """Rendered SQL text and the values bound to ?1..?N, in order."""

    sql: str
    params: List[Any]


class QueryBuilder:
    """D1 (SQLite dialect) query builder."""

    placeholder_prefix = "?"

    def placeholder(self, index: int) -> str:
        """Return the numbered placeholder for a 1-based position."""
        return f"{self.placeholder_prefix}{index}"

    def build_select(
        self,
        table: str,
        conditions: Optional[Pairs] = None,
        fields: Optional[Union[str, Sequence[str]]] = None,
    ) -> Statement:
        """
        Build SELECT query.

        Args:
            table: Table name
            conditions: Ordered column -> value filters; None or IS_NULL means IS NULL
            fields: Comma separated string or list of columns (None = *)

        Returns:
            Statement with ?1..?N bound to the non-null condition values
        """
        table = self._check_table(table)
        select_clause = self._select_clause(fields)
        where_clause, params = self.build_where_clause(conditions)

        query = f"SELECT {select_clause} FROM {table}"
        if where_clause:
            query += f" WHERE {where_clause}"
        return Statement(query, params)

    def build_insert(self, table: str, entity: Pairs) -> Statement:
        """
        Build INSERT query returning the inserted row.

        Args:
            table: Table name
            entity: Ordered column -> value data, at least one column

        Returns:
            Statement with one placeholder per column
        """
        table = self._check_table(table)
        items = self.normalize(entity, "entity")
        if not items:
            raise InvalidArgument(f"Cannot insert into {table!r} without any columns")

        columns = []
        params = []
        for col, value in items:
            if isinstance(value, (CurrentTimestamp, IsNull)):
                raise InvalidArgument(
                    f"{value!r} is not a valid insert value for column {col!r}"
                )
            columns.append(col)
            params.append(value)

        placeholders = ", ".join(self.placeholder(i) for i in range(1, len(params) + 1))
        query = (
            f"INSERT INTO {table} ({','.join(columns)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )
        return Statement(query, params)

    def build_update(
        self,
        table: str,
        entity: Pairs,
        conditions: Optional[Pairs] = None,
    ) -> Statement:
        """
        Build UPDATE query.

        CURRENT_TIMESTAMP values are written inline and are not bound.
        Condition placeholders continue numbering after the SET values.

        Args:
            table: Table name
            entity: Ordered column -> new value, at least one column
            conditions: Ordered WHERE conditions (None = every row)

        Returns:
            Statement with SET values followed by condition values
        """
        table = self._check_table(table)
        items = self.normalize(entity, "entity")
        if not items:
            raise InvalidArgument(f"Cannot update {table!r} without any columns")

        set_parts = []
        params: List[Any] = []
        for col, value in items:
            if isinstance(value, CurrentTimestamp):
                set_parts.append(f" {col} = CURRENT_TIMESTAMP ")
            elif isinstance(value, IsNull):
                raise InvalidArgument(
                    f"IS_NULL is a condition marker; use None to set {col!r} to NULL"
                )
            else:
                params.append(value)
                set_parts.append(f" {col} = {self.placeholder(len(params))} ")

        where_clause, where_params = self.build_where_clause(
            conditions, base_param_count=len(params)
        )

        query = f"UPDATE {table} SET {', '.join(set_parts)}"
        if where_clause:
            query += f" WHERE {where_clause}"
        return Statement(query, params + where_params)

    def build_delete(self, table: str, conditions: Optional[Pairs] = None) -> Statement:
        """
        Build DELETE query.

        Args:
            table: Table name
            conditions: Ordered WHERE conditions (None = every row)

        Returns:
            Statement with ?1..?N bound to the condition values
        """
        table = self._check_table(table)
        where_clause, params = self.build_where_clause(conditions)

        query = f"DELETE FROM {table}"
        if where_clause:
            query += f" WHERE {where_clause}"
        return Statement(query, params)

    def build_where_clause(
        self, conditions: Optional[Pairs], base_param_count: int = 0
    ) -> Tuple[str, List[Any]]:
        """
        Build WHERE clause body from conditions.

        Equality clauses come first in mapping order, then IS NULL clauses.

        Args:
            conditions: Ordered column -> value conditions
            base_param_count: Placeholders already used by the statement

        Returns:
            Tuple of (clause without the WHERE keyword, values); ("", []) when empty
        """
        equal_parts = []
        null_parts = []
        params: List[Any] = []

        for col, value in self.normalize(conditions, "conditions"):
            if value is None or isinstance(value, IsNull):
                null_parts.append(f" {col} IS NULL ")
            elif isinstance(value, CurrentTimestamp):
                raise InvalidArgument(
                    f"CURRENT_TIMESTAMP cannot be used as a condition on {col!r}"
                )
            else:
                params.append(value)
                placeholder = self.placeholder(base_param_count + len(params))
                equal_parts.append(f" {col} = {placeholder} ")

        return self._join_and(equal_parts + null_parts), params

    # ==================== Helpers ====================

    @staticmethod
    def _join_and(parts: List[str]) -> str:
        """Join clause fragments with AND; empty input gives an empty string."""
        if not parts:
            return ""
        return " AND ".join(parts)

    @staticmethod
    def _check_table(table: Any) -> str:
        if not isinstance(table, str) or not table.strip():
            raise InvalidArgument(f"Table name must be a non-empty string, got {table!r}")
        return table

    @staticmethod
    def _select_clause(fields: Optional[Union[str, Sequence[str]]]) -> str:
        if fields is None:
            return "*"
        if isinstance(fields, str):
            if not fields.strip():
                raise InvalidArgument("Field list must not be empty")
            return fields
        columns = list(fields)
        if not columns or not all(isinstance(c, str) and c.strip() for c in columns):
            raise InvalidArgument(f"Field list must contain non-empty column names, got {fields!r}")
        return ",".join(columns)

    @staticmethod
    def normalize(pairs: Optional[Pairs], label: str) -> List[Tuple[str, Any]]:
        """
        Turn a mapping or an iterable of (column, value) pairs into a list of pairs.

        Raises:
            InvalidArgument: On non-string/empty columns, malformed pairs or duplicates
        """
        if pairs is None:
            return []

        if isinstance(pairs, Mapping):
            items = list(pairs.items())
        elif isinstance(pairs, (str, bytes)) or not isinstance(pairs, Iterable):
            raise InvalidArgument(
                f"{label} must be a mapping or a sequence of (column, value) pairs, "
                f"got {type(pairs).__name__}"
            )
        else:
            items = []
            for pair in pairs:
                if not isinstance(pair, tuple) or len(pair) != 2:
                    raise InvalidArgument(
                        f"{label} entries must be (column, value) pairs, got {pair!r}"
                    )
                items.append(pair)

        seen = set()
        for col, _ in items:
            if not isinstance(col, str) or not col.strip():
                raise InvalidArgument(
                    f"{label} column names must be non-empty strings, got {col!r}"
                )
            if col in seen:
                raise InvalidArgument(f"Duplicate column {col!r} in {label}")
            seen.add(col)

        return items
