"""Schema introspection producing TableDescriptor records."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import duckdb

from backend.connection_manager import execute_statement, get_db_connection
from backend.models import Column, TableDescriptor
from utils.query_builder import quote_identifier

_TABLES_SQL = """
SELECT table_name
FROM duckdb_tables()
WHERE schema_name = 'main' AND NOT temporary
ORDER BY table_name
"""

_COLUMNS_SQL = """
SELECT column_name, data_type, NOT is_nullable AS not_null
FROM duckdb_columns()
WHERE schema_name = 'main' AND table_name = $table
ORDER BY column_index
"""

_PRIMARY_KEY_SQL = """
SELECT constraint_column_names
FROM duckdb_constraints()
WHERE schema_name = 'main' AND table_name = $table AND constraint_type = 'PRIMARY KEY'
"""


class DuckDBSchemaSource:
    """Loads the table list of a DuckDB database once."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        logger_obj: Optional[logging.Logger] = None,
        connection: Optional[duckdb.DuckDBPyConnection] = None,
        read_only: bool = True,
    ) -> None:
        self.db_path = db_path
        self.read_only = read_only
        self.logger = logger_obj or logging.getLogger(__name__)
        self._connection = connection

    def load_tables(self) -> list[TableDescriptor]:
        """Return one descriptor per base table, sorted by name."""
        if self._connection is not None:
            return self._describe_all(self._connection)
        with get_db_connection(self.db_path, read_only=self.read_only, logger_obj=self.logger) as conn:
            return self._describe_all(conn)

    def _describe_all(self, conn: duckdb.DuckDBPyConnection) -> list[TableDescriptor]:
        _, table_rows = execute_statement(conn, _TABLES_SQL, logger_obj=self.logger)
        tables = [self._describe(conn, row[0]) for row in table_rows]
        self.logger.info(f"Database table list fetched: {len(tables)} tables.")
        return tables

    def _describe(self, conn: duckdb.DuckDBPyConnection, table_name: str) -> TableDescriptor:
        params = {"table": table_name}
        _, pk_rows = execute_statement(conn, _PRIMARY_KEY_SQL, params, self.logger)
        pk_columns = {name for row in pk_rows for name in (row[0] or [])}

        _, column_rows = execute_statement(conn, _COLUMNS_SQL, params, self.logger)
        columns = tuple(
            Column(
                name=name,
                type=data_type,
                not_null=bool(not_null),
                is_primary_key=name in pk_columns,
            )
            for name, data_type, not_null in column_rows
        )

        _, count_rows = execute_statement(
            conn, f"SELECT COUNT(*) FROM {quote_identifier(table_name)}", logger_obj=self.logger
        )
        row_count = int(count_rows[0][0]) if count_rows else 0
        self.logger.debug(f"Described table '{table_name}': {len(columns)} columns, {row_count} rows")
        return TableDescriptor(name=table_name, columns=columns, row_count=row_count)
