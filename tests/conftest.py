# tests/conftest.py
import asyncio
import os
import sys
from typing import Any, Callable, Dict, List, Optional

import duckdb
import pytest

# Make sure `src/` is on the import path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
sys.path.insert(0, os.path.join(ROOT, "src"))

from backend.errors import ClipboardError  # noqa: E402
from backend.models import Column, ResultSet, TableDescriptor  # noqa: E402
from config.grid import GridConfig  # noqa: E402
from ui.grid.sinks import Notification  # noqa: E402

PEOPLE_ROW_COUNT = 120

PEOPLE_DDL = """
CREATE TABLE people (
    id INTEGER PRIMARY KEY,
    name VARCHAR NOT NULL,
    email VARCHAR,
    profile STRUCT(city VARCHAR, tags VARCHAR[]),
    score DOUBLE
)
"""

# Odd ids get lowercase "user" emails, even ids uppercase "USER"; every tenth profile is NULL
PEOPLE_ROWS = """
INSERT INTO people
SELECT
    i,
    'User ' || lpad(CAST(i AS VARCHAR), 3, '0'),
    CASE WHEN i % 2 = 1 THEN 'user' || CAST(i AS VARCHAR) || '@example.com' ELSE 'USER' || CAST(i AS VARCHAR) || '@Example.org' END,
    CASE WHEN i % 10 = 0 THEN NULL ELSE {'city': 'City ' || CAST(i % 3 AS VARCHAR), 'tags': ['a', 'b']} END,
    i * 1.5
FROM range(1, 121) t(i)
"""


def populate_people(con: duckdb.DuckDBPyConnection) -> None:
    con.execute(PEOPLE_DDL)
    con.execute(PEOPLE_ROWS)
    con.execute("CREATE TABLE empty_things (thing_id INTEGER, label VARCHAR)")


@pytest.fixture
def people_conn():
    """In-memory DuckDB with a 120-row people table and an empty table."""
    con = duckdb.connect(database=":memory:")
    populate_people(con)
    yield con
    con.close()


@pytest.fixture
def people_db_path(tmp_path):
    """Same data as people_conn, persisted to a file."""
    db_path = tmp_path / "people.duckdb"
    con = duckdb.connect(str(db_path))
    populate_people(con)
    con.close()
    return db_path


@pytest.fixture
def people_table() -> TableDescriptor:
    return TableDescriptor(
        name="people",
        columns=(
            Column("id", "INTEGER", not_null=True, is_primary_key=True),
            Column("name", "VARCHAR", not_null=True),
            Column("email", "VARCHAR"),
        ),
        row_count=PEOPLE_ROW_COUNT,
    )


@pytest.fixture
def grid_config() -> GridConfig:
    return GridConfig(page_size=50, truncate_length=100, locked_column_width_px=200, pager_window=5)


class RecordingNotifier:
    """Notification sink that keeps everything it was told."""

    def __init__(self) -> None:
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def errors(self) -> List[Notification]:
        return [n for n in self.notifications if n.is_error]

    @property
    def last(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None


class RecordingClipboard:
    """Clipboard sink that stores writes, or raises the configured error."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.writes: List[str] = []

    def write(self, text: str) -> None:
        if self.error is not None:
            raise self.error
        self.writes.append(text)


class ScriptedExecutor:
    """Executor whose responses are computed per call and can be held back.

    ``gates`` maps a search term to an asyncio.Event; calls carrying that term
    wait for the event, which lets tests resolve requests out of order.
    """

    def __init__(
        self,
        rows_for: Optional[Callable[[str, Dict[str, Any]], ResultSet]] = None,
        total_for: Optional[Callable[[Dict[str, Any]], int]] = None,
    ) -> None:
        self.rows_for = rows_for or (lambda sql, params: ResultSet.from_rows(["name"], [[f"match:{params.get('search', '')}"]]))
        self.total_for = total_for or (lambda params: 1)
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    async def execute(self, sql: str, params: Optional[Dict[str, Any]] = None) -> ResultSet:
        params = dict(params or {})
        self.calls.append((sql, params))
        gate = self.gates.get(params.get("search", ""))
        if gate is not None:
            await gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        if sql.startswith("SELECT COUNT(*)"):
            return ResultSet.from_rows(["total_rows"], [[self.total_for(params)]])
        return self.rows_for(sql, params)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clipboard() -> RecordingClipboard:
    return RecordingClipboard()


@pytest.fixture
def scripted_executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def counting_executor() -> ScriptedExecutor:
    """Scripted executor whose row values echo the statement, so re-queries are visible."""
    return ScriptedExecutor(
        rows_for=lambda sql, params: ResultSet.from_rows(["id"], [[len(sql)]]),
        total_for=lambda params: 120,
    )


@pytest.fixture
def failing_clipboard() -> RecordingClipboard:
    return RecordingClipboard(error=ClipboardError("clipboard unavailable"))
