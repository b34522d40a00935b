"""
Database connection management with explicit resource cleanup.
Every statement runs on a connection that is closed when the block exits.
"""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Any, Generator, Mapping, Optional

import duckdb

from backend.errors import QueryExecutionError


@contextlib.contextmanager
def get_db_connection(
    db_path: Optional[Path], read_only: bool = True, logger_obj: logging.Logger | None = None
) -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """
    Context manager for DuckDB connections with proper resource cleanup.

    Args:
        db_path: Path to the database file, or None for an in-memory database
        read_only: Whether to open in read-only mode
        logger_obj: Optional logger for debug messages

    Yields:
        DuckDB connection that will be automatically closed

    Raises:
        QueryExecutionError: The database file is missing or cannot be opened

    Example:
        with get_db_connection(db_path) as conn:
            rows = conn.execute('SELECT * FROM "people"').fetchall()
    """
    if logger_obj is None:
        logger_obj = logging.getLogger(__name__)

    if db_path is None:
        database = ":memory:"
        read_only = False
    else:
        if read_only and not db_path.exists():
            logger_obj.warning(f"Database {db_path} does not exist.")
            raise QueryExecutionError(f"Database {db_path} does not exist.")
        database = db_path.as_posix()

    try:
        conn = duckdb.connect(database=database, read_only=read_only)
    except duckdb.Error as e:
        logger_obj.error(f"Error connecting to database at {database}: {e}", exc_info=True)
        raise QueryExecutionError(str(e), original=e) from e

    logger_obj.debug(f"Connected to DuckDB at {database} (read_only={read_only})")
    try:
        yield conn
    finally:
        conn.close()
        logger_obj.debug(f"Connection to {database} closed")


def execute_statement(
    conn: duckdb.DuckDBPyConnection,
    query: str,
    params: Optional[Mapping[str, Any]] = None,
    logger_obj: logging.Logger | None = None,
) -> tuple[list[str], list[list[Any]]]:
    """
    Execute one statement and fetch column names plus rows.

    Args:
        conn: DuckDB connection
        query: SQL statement
        params: Named parameters referenced as ``$name`` in the statement
        logger_obj: Optional logger for debug messages

    Returns:
        (column names, rows); both empty for statements without a result set

    Raises:
        QueryExecutionError: DuckDB rejected or failed the statement
    """
    if logger_obj is None:
        logger_obj = logging.getLogger(__name__)

    try:
        if params:
            logger_obj.debug(f"Executing query: {query[:200]}... with params: {dict(params)}")
            cursor = conn.execute(query, dict(params))
        else:
            logger_obj.debug(f"Executing query: {query[:200]}...")
            cursor = conn.execute(query)

        if cursor.description is None:
            return [], []
        column_names = [desc[0] for desc in cursor.description]
        rows = [list(row) for row in cursor.fetchall()]
        return column_names, rows
    except duckdb.Error as e:
        query_info = f"Query: {query}"
        if params:
            query_info += f"\nParams: {dict(params)}"
        logger_obj.error(f"Query execution error: {e}\n{query_info}", exc_info=True)
        raise QueryExecutionError(str(e), sql=query, original=e) from e
