"""
Fetch, create, update and remove against a D1 database.

Each operation renders one statement with QueryBuilder, delegates it to the
D1Database and returns the backend's result unchanged.
"""

from typing import Any, Optional, Sequence, Union

import structlog

from .adapters import D1Database
from .query_builder import CURRENT_TIMESTAMP, Pairs, QueryBuilder, Statement


class D1Client:
    """
    Statement builder bound to a D1 database.

    Usage:
        client = D1Client(env_db)

        await client.create("users", {"name": "john", "age": 44})
        await client.update("users", {"age": 45}, {"id": 5})
        rows = (await client.fetch("users", {"id": 5})).results
        await client.remove("users", {"id": 5}, soft_remove=True)
    """

    def __init__(
        self,
        db: D1Database,
        logger=None,
        deleted_field: str = "deleted_at",
        query_builder: Optional[QueryBuilder] = None,
    ):
        """
        Initialize client.

        Args:
            db: D1 database (anything exposing prepare -> bind -> all/run)
            logger: Optional structlog-style logger
            deleted_field: Deletion timestamp column used by soft removes
            query_builder: Optional builder override
        """
        self.db = db
        self.deleted_field = deleted_field
        self.query_builder = query_builder or QueryBuilder()
        self.logger = logger or structlog.get_logger(__name__)

    # ==================== CRUD Operations ====================

    async def fetch(
        self,
        table: str,
        conditions: Optional[Pairs] = None,
        fields: Optional[Union[str, Sequence[str]]] = None,
    ):
        """
        Get all records of a table matching conditions.

        Args:
            table: Table name
            conditions: Ordered filters, e.g. {"status": 1, "username": "john"};
                None or IS_NULL values match NULL columns
            fields: Comma separated column names (default *)

        Returns:
            Backend result (rows, success flag, meta)
        """
        statement = self.query_builder.build_select(table, conditions, fields)
        return await self._execute("fetch", table, statement, all_rows=True)

    async def create(self, table: str, entity: Pairs):
        """
        Create a record and return it.

        Args:
            table: Table name
            entity: Ordered data, e.g. {"name": "john", "surname": "doe", "age": 44}

        Returns:
            Backend result with the inserted row
        """
        statement = self.query_builder.build_insert(table, entity)
        return await self._execute("create", table, statement)

    async def update(self, table: str, entity: Pairs, conditions: Optional[Pairs] = None):
        """
        Update records.

        Without conditions every row of the table is updated.

        Args:
            table: Table name
            entity: Ordered new values, e.g. {"age": 45}; CURRENT_TIMESTAMP uses the db clock
            conditions: Ordered filters

        Returns:
            Backend result
        """
        statement = self.query_builder.build_update(table, entity, conditions)
        return await self._execute("update", table, statement)

    async def remove(
        self,
        table: str,
        conditions: Optional[Pairs] = None,
        soft_remove: bool = False,
    ):
        """
        Delete records.

        With soft_remove, a single matching row whose deletion timestamp is
        still NULL gets the timestamp set instead of being deleted. Zero or
        several matches, or a row already soft deleted, are hard deleted.

        Args:
            table: Table name
            conditions: Ordered filters
            soft_remove: Prefer setting the deletion timestamp

        Returns:
            Backend result
        """
        # Conditions may be used by up to three statements
        conditions = self.query_builder.normalize(conditions, "conditions")
        statement = self.query_builder.build_delete(table, conditions)

        if soft_remove:
            matches = await self.fetch(table, conditions)
            rows = matches.results
            if len(rows) == 1 and self._is_active(rows[0]):
                self.logger.info(
                    "d1_soft_remove",
                    table=table,
                    deleted_field=self.deleted_field,
                )
                entity = {self.deleted_field: CURRENT_TIMESTAMP}
                return await self.update(table, entity, conditions)

            self.logger.info("d1_soft_remove_skipped", table=table, matches=len(rows))

        return await self._execute("remove", table, statement)

    # ==================== Helper Methods ====================

    def _is_active(self, row: Any) -> bool:
        """True if the row has the deletion column and it is unset."""
        return self.deleted_field in row and row[self.deleted_field] is None

    async def _execute(
        self, operation: str, table: str, statement: Statement, all_rows: bool = False
    ):
        self.logger.debug(
            "d1_statement",
            operation=operation,
            table=table,
            sql=statement.sql,
            param_count=len(statement.params),
        )

        prepared = self.db.prepare(statement.sql).bind(*statement.params)
        try:
            if all_rows:
                return await prepared.all()
            return await prepared.run()
        except Exception as e:
            self.logger.error(
                "d1_statement_failed",
                operation=operation,
                table=table,
                sql=statement.sql,
                error=str(e),
                exc_info=True,
            )
            raise
