"""Tests for the grid state machine."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from backend.errors import NO_DATA_MESSAGE, NO_SEARCH_MATCH_MESSAGE, QueryExecutionError
from backend.executor import DuckDBQueryExecutor
from backend.models import ResultSet, SortDirection, SortSpec
from backend.schema_source import DuckDBSchemaSource
from ui.state.grid_state import GridState, clamp_page, next_sort
from ui.state.state_contracts import LoadStatus, Mode


@pytest.fixture
def people_state(people_conn, notifier, grid_config):
    tables = DuckDBSchemaSource(connection=people_conn).load_tables()
    executor = DuckDBQueryExecutor.in_memory(connection=people_conn)
    return GridState(executor=executor, tables=tables, notifier=notifier, config=grid_config)


def scripted_state(executor, people_table, notifier, grid_config):
    return GridState(executor=executor, tables=[people_table], notifier=notifier, config=grid_config)


def test_next_sort_cycles_through_three_states():
    first = next_sort(None, "name")
    assert first == SortSpec("name", SortDirection.ASCENDING)
    second = next_sort(first, "name")
    assert second == SortSpec("name", SortDirection.DESCENDING)
    assert next_sort(second, "name") is None
    assert next_sort(second, "email") == SortSpec("email", SortDirection.ASCENDING)


@pytest.mark.parametrize("page, total, expected", [(4, 3, 3), (0, 3, 1), (2, 3, 2), (5, 0, 1)])
def test_clamp_page(page, total, expected):
    assert clamp_page(page, total) == expected


@pytest.mark.asyncio
async def test_select_table_loads_first_page(people_state):
    assert await people_state.select_table("people") is True
    snap = people_state.snapshot()
    assert snap.status is LoadStatus.READY
    assert snap.total_row_count == 120
    assert snap.total_pages == 3
    assert len(snap.rows) == 50
    assert snap.column_names == ("id", "name", "email", "profile", "score")
    assert snap.rows[0][0] == 1
    assert "LIMIT 50" in snap.last_sql


@pytest.mark.asyncio
async def test_set_page_clamps_past_last_page(people_state):
    await people_state.select_table("people")
    assert await people_state.set_page(4) is True
    assert people_state.browsing.page_number == 3
    rows = people_state.get_visible_rows()
    assert len(rows) == 20
    assert rows[0][0] == 101


@pytest.mark.asyncio
async def test_search_resets_page_and_filters_case_sensitively(people_state):
    await people_state.select_table("people")
    await people_state.set_page(2)
    await people_state.set_search("USER")
    assert people_state.browsing.page_number == 1
    assert people_state.total_row_count == 60
    assert all(row[0] % 2 == 0 for row in people_state.get_visible_rows())


@pytest.mark.asyncio
async def test_search_without_matches_is_empty_not_error(people_state):
    await people_state.select_table("people")
    await people_state.set_search("%")
    snap = people_state.snapshot()
    assert snap.status is LoadStatus.EMPTY
    assert snap.total_row_count == 0
    assert snap.empty_notice.message == NO_SEARCH_MATCH_MESSAGE


@pytest.mark.asyncio
async def test_empty_table_shows_no_data_notice(people_state):
    await people_state.select_table("empty_things")
    snap = people_state.snapshot()
    assert snap.status is LoadStatus.EMPTY
    assert snap.empty_notice.message == NO_DATA_MESSAGE
    assert snap.total_pages == 0


@pytest.mark.asyncio
async def test_sort_cycle_orders_rows(people_state):
    await people_state.select_table("people")
    await people_state.set_page(2)
    await people_state.set_sort("score")
    assert people_state.browsing.page_number == 1
    assert people_state.get_visible_rows()[0][0] == 1

    await people_state.set_sort("score")
    assert people_state.browsing.sort == SortSpec("score", SortDirection.DESCENDING)
    assert people_state.get_visible_rows()[0][0] == 120

    await people_state.set_sort("score")
    assert people_state.browsing.sort is None
    assert "ORDER BY" not in people_state.snapshot().last_sql


@pytest.mark.asyncio
async def test_sort_on_unknown_column_is_rejected(people_state):
    await people_state.select_table("people")
    assert await people_state.set_sort("missing") is False
    assert people_state.browsing.sort is None


@pytest.mark.asyncio
async def test_unknown_table_notifies_and_keeps_state(people_state, notifier):
    assert await people_state.select_table("nope") is False
    assert notifier.last.title == "Unknown table"
    assert people_state.get_current_table() is None


@pytest.mark.asyncio
async def test_select_table_resets_parameters_and_locks(people_state):
    await people_state.select_table("people")
    await people_state.set_search("user")
    await people_state.set_sort("name")
    people_state.toggle_column_lock(1)
    await people_state.select_table("people")
    assert people_state.browsing.search_term == ""
    assert people_state.browsing.sort is None
    assert len(people_state.locked_columns) == 0


@pytest.mark.asyncio
async def test_ad_hoc_round_trip_restores_browsing_without_requery(people_table, notifier, grid_config, counting_executor):
    executor = counting_executor
    state = scripted_state(executor, people_table, notifier, grid_config)
    await state.select_table("people")
    await state.set_search("user")
    await state.set_sort("name")
    before = state.snapshot()
    calls = len(executor.calls)

    assert state.submit_ad_hoc_result(["a", "b"], [[1, 2], [3, 4]], sql="SELECT 1") is True
    assert state.get_mode() is Mode.AD_HOC
    assert state.get_visible_columns() == ["a", "b"]
    assert state.total_pages == 1
    assert state.current_table_descriptor is None
    assert await state.set_search("x") is False

    assert await state.return_to_browsing() is True
    after = state.snapshot()
    assert len(executor.calls) == calls
    assert after.search_term == before.search_term == "user"
    assert after.sort == before.sort
    assert after.page_number == before.page_number
    assert after.rows == before.rows
    assert after.last_sql == before.last_sql


@pytest.mark.asyncio
async def test_return_to_browsing_when_already_browsing_is_a_no_op(people_state):
    await people_state.select_table("people")
    assert await people_state.return_to_browsing() is False


def test_ad_hoc_result_with_ragged_rows_is_rejected(people_table, notifier, grid_config, scripted_executor):
    state = scripted_state(scripted_executor, people_table, notifier, grid_config)
    assert state.submit_ad_hoc_result(["a", "b"], [[1]]) is False
    assert notifier.last.title == "Invalid query result"
    assert state.get_mode() is Mode.BROWSING


@pytest.mark.asyncio
async def test_run_ad_hoc_query_success_and_failure(people_state, notifier):
    assert await people_state.run_ad_hoc_query("SELECT 1 AS one, 'x' AS two") is True
    assert notifier.last.title == "Query executed successfully"
    assert notifier.last.description == "Returned 1 rows"
    assert people_state.get_visible_rows() == [[1, "x"]]

    shown = people_state.snapshot()
    assert await people_state.run_ad_hoc_query("SELEC nonsense") is False
    assert notifier.last.title == "Query execution failed"
    assert notifier.last.is_error
    assert people_state.snapshot().rows == shown.rows


@pytest.mark.asyncio
async def test_run_ad_hoc_query_requires_sql(people_state, notifier):
    assert await people_state.run_ad_hoc_query("   ") is False
    assert notifier.last.title == "No query to execute"


@pytest.mark.asyncio
async def test_executor_failure_enters_error_state(people_table, notifier, grid_config, scripted_executor):
    state = scripted_state(scripted_executor, people_table, notifier, grid_config)
    scripted_executor.fail_with = QueryExecutionError("disk on fire")
    assert await state.select_table("people") is False
    snap = state.snapshot()
    assert snap.status is LoadStatus.ERROR
    assert snap.error_message == "disk on fire"
    assert snap.rows == ()
    assert snap.total_row_count == 0
    assert notifier.errors[-1].description == "disk on fire"

    scripted_executor.fail_with = None
    assert await state.reload() is True
    assert state.status is LoadStatus.READY


@pytest.mark.asyncio
async def test_malformed_count_is_an_error(people_table, notifier, grid_config, scripted_executor):
    scripted_executor.total_for = lambda params: "many"
    state = scripted_state(scripted_executor, people_table, notifier, grid_config)
    await state.select_table("people")
    assert state.status is LoadStatus.ERROR


@pytest.mark.asyncio
async def test_stale_response_is_discarded(people_table, notifier, grid_config, scripted_executor):
    state = scripted_state(scripted_executor, people_table, notifier, grid_config)
    await state.select_table("people")

    gate_a = asyncio.Event()
    scripted_executor.gates["a"] = gate_a
    first = asyncio.create_task(state.set_search("a"))
    await asyncio.sleep(0)
    assert state.status is LoadStatus.LOADING

    assert await state.set_search("ab") is True
    gate_a.set()
    assert await first is False

    assert state.browsing.search_term == "ab"
    assert state.get_visible_rows() == [["match:ab"]]


@pytest.mark.asyncio
async def test_ad_hoc_submission_supersedes_in_flight_load(people_table, notifier, grid_config, scripted_executor):
    state = scripted_state(scripted_executor, people_table, notifier, grid_config)
    await state.select_table("people")
    gate = asyncio.Event()
    scripted_executor.gates["slow"] = gate
    pending = asyncio.create_task(state.set_search("slow"))
    await asyncio.sleep(0)

    state.submit_ad_hoc_result(["x"], [[1]])
    gate.set()
    assert await pending is False
    assert state.get_visible_rows() == [[1]]
    assert state.get_mode() is Mode.AD_HOC


@pytest.mark.asyncio
async def test_shrinking_table_lands_on_last_page(people_table, notifier, grid_config, scripted_executor):
    totals = {"value": 120}
    scripted_executor.total_for = lambda params: totals["value"]
    state = scripted_state(scripted_executor, people_table, notifier, grid_config)
    await state.select_table("people")
    await state.set_page(3)

    totals["value"] = 60
    assert await state.reload() is True
    assert state.browsing.page_number == 2
    assert state.total_pages == 2


@pytest.mark.asyncio
async def test_listeners_receive_changes_until_unsubscribed(people_state):
    seen = []
    unsubscribe = people_state.subscribe(lambda state: seen.append(state.status))
    await people_state.select_table("people")
    assert seen == [LoadStatus.LOADING, LoadStatus.READY]

    unsubscribe()
    people_state.toggle_column_lock(0)
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_state(people_state):
    def broken(state):
        raise RuntimeError("boom")

    people_state.subscribe(broken)
    assert await people_state.select_table("people") is True


@pytest.mark.asyncio
async def test_toggle_column_lock_bounds(people_state):
    await people_state.select_table("people")
    assert people_state.toggle_column_lock(2) is True
    assert people_state.snapshot().locked_columns == (2,)
    assert people_state.toggle_column_lock(2) is False
    assert people_state.toggle_column_lock(99) is None



@pytest.mark.asyncio
async def test_run_ad_hoc_statement_without_result_set(people_table, notifier, grid_config):
    executor = AsyncMock()
    executor.execute.return_value = ResultSet()
    state = GridState(executor=executor, tables=[people_table], notifier=notifier, config=grid_config)

    assert await state.run_ad_hoc_query("CREATE TABLE t (x INTEGER)") is True
    executor.execute.assert_awaited_once_with("CREATE TABLE t (x INTEGER)")
    assert notifier.last.title == "Query executed"
    assert notifier.last.description == "No results returned"
    assert state.status is LoadStatus.EMPTY
    assert state.total_pages == 0


@pytest.mark.asyncio
async def test_destroy_releases_rows_and_listeners(people_state):
    seen = []
    people_state.subscribe(lambda state: seen.append(state.status))
    await people_state.select_table("people")
    people_state.destroy()

    assert people_state.get_visible_rows() == []
    assert people_state.status is LoadStatus.EMPTY
    people_state.toggle_column_lock(0)
    assert len(seen) == 2


class NoneExecutor:
    async def execute(self, sql, params=None):
        return None


class RaggedExecutor:
    async def execute(self, sql, params=None):
        if sql.startswith("SELECT COUNT(*)"):
            return ResultSet.from_rows(["total_rows"], [[1]])
        return ResultSet(column_names=("a",), rows=((1, 2),))


@pytest.mark.asyncio
async def test_ad_hoc_query_with_missing_response_fails_cleanly(people_table, notifier, grid_config):
    state = GridState(executor=NoneExecutor(), tables=[people_table], notifier=notifier, config=grid_config)

    assert await state.run_ad_hoc_query("SELECT 1") is False
    assert notifier.last.title == "Query execution failed"
    assert notifier.last.is_error
    assert state.get_mode() is Mode.BROWSING


@pytest.mark.asyncio
async def test_ragged_browse_rows_enter_error_state(people_table, notifier, grid_config):
    state = GridState(executor=RaggedExecutor(), tables=[people_table], notifier=notifier, config=grid_config)

    assert await state.select_table("people") is False
    assert state.status is LoadStatus.ERROR
    assert "Malformed result" in state.snapshot().error_message
    assert state.get_visible_rows() == []


@pytest.mark.asyncio
async def test_failed_load_clears_locked_columns(people_table, notifier, grid_config, scripted_executor):
    state = GridState(executor=scripted_executor, tables=[people_table], notifier=notifier, config=grid_config)
    await state.select_table("people")
    assert state.toggle_column_lock(0) is True

    scripted_executor.fail_with = QueryExecutionError("gone")
    await state.set_search("x")
    snap = state.snapshot()
    assert snap.column_names == ()
    assert snap.locked_columns == ()


@pytest.mark.asyncio
async def test_column_change_clears_locked_columns(people_table, notifier, grid_config, scripted_executor):
    state = GridState(executor=scripted_executor, tables=[people_table], notifier=notifier, config=grid_config)
    await state.select_table("people")
    state.toggle_column_lock(0)

    await state.set_search("same columns")
    assert state.snapshot().locked_columns == (0,)

    scripted_executor.rows_for = lambda sql, params: ResultSet.from_rows(["other"], [["v"]])
    await state.reload()
    assert state.snapshot().locked_columns == ()


@pytest.mark.asyncio
async def test_ad_hoc_write_refreshes_tables_and_browsing(people_conn, notifier, grid_config):
    source = DuckDBSchemaSource(connection=people_conn)
    state = GridState(
        executor=DuckDBQueryExecutor.in_memory(connection=people_conn),
        tables=source.load_tables(),
        notifier=notifier,
        config=grid_config,
        schema_loader=source.load_tables,
    )
    await state.select_table("people")

    assert await state.run_ad_hoc_query("DELETE FROM people WHERE id > 100") is True
    assert state.get_table("people").row_count == 100
    assert state.snapshot().ad_hoc.sql == "DELETE FROM people WHERE id > 100"

    assert await state.return_to_browsing() is True
    assert state.total_row_count == 100
    assert state.snapshot().ad_hoc is None


@pytest.mark.asyncio
async def test_ad_hoc_select_keeps_cached_browsing_page(people_conn, notifier, grid_config):
    source = DuckDBSchemaSource(connection=people_conn)
    loader_calls = []

    def loader():
        loader_calls.append(1)
        return source.load_tables()

    state = GridState(
        executor=DuckDBQueryExecutor.in_memory(connection=people_conn),
        tables=source.load_tables(),
        notifier=notifier,
        config=grid_config,
        schema_loader=loader,
    )
    await state.select_table("people")
    before = state.snapshot()

    await state.run_ad_hoc_query("SELECT 1 AS one")
    assert loader_calls == [1]
    await state.return_to_browsing()
    assert state.snapshot().rows == before.rows
