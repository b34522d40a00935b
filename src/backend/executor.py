"""Query executors consumed by the grid state machine."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

import duckdb

from backend.connection_manager import execute_statement, get_db_connection
from backend.errors import QueryExecutionError
from backend.models import ResultSet


class QueryExecutor(Protocol):
    """Runs one SQL statement and returns its result matrix."""

    async def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> ResultSet:
        ...


class DuckDBQueryExecutor:
    """Executes statements against a DuckDB database file.

    Each call opens its own connection inside a worker thread so the event
    loop is never blocked. ``in_memory`` wraps one shared connection instead,
    which is what tests and throwaway sessions use.
    """

    def __init__(
        self,
        db_path: Optional[Path],
        read_only: bool = True,
        logger_obj: Optional[logging.Logger] = None,
        connection: Optional[duckdb.DuckDBPyConnection] = None,
    ) -> None:
        self.db_path = db_path
        self.read_only = read_only
        self.logger = logger_obj or logging.getLogger(__name__)
        self._connection = connection
        self._connection_lock = threading.Lock()

    @classmethod
    def in_memory(
        cls,
        connection: Optional[duckdb.DuckDBPyConnection] = None,
        logger_obj: Optional[logging.Logger] = None,
    ) -> "DuckDBQueryExecutor":
        """Executor bound to a single (possibly pre-populated) connection."""
        return cls(
            db_path=None,
            read_only=False,
            logger_obj=logger_obj,
            connection=connection or duckdb.connect(database=":memory:"),
        )

    def _run(self, sql: str, params: Optional[Mapping[str, Any]]) -> ResultSet:
        start = time.perf_counter()
        if self._connection is not None:
            # DuckDB connections are not safe for concurrent use; serialize
            with self._connection_lock:
                cursor = self._connection.cursor()
                try:
                    names, rows = execute_statement(cursor, sql, params, self.logger)
                finally:
                    cursor.close()
        else:
            with get_db_connection(self.db_path, read_only=self.read_only, logger_obj=self.logger) as conn:
                names, rows = execute_statement(conn, sql, params, self.logger)

        try:
            result = ResultSet.from_rows(names, rows)
        except ValueError as e:
            raise QueryExecutionError(f"Malformed result: {e}", sql=sql, original=e) from e
        self.logger.info("Query executed in %.3f sec (%d rows)", time.perf_counter() - start, result.row_count)
        return result

    async def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> ResultSet:
        """Run ``sql`` off the event loop and return its ResultSet."""
        return await asyncio.to_thread(self._run, sql, params)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
