"""
Grid state machine.

Owns the browsing parameters (table, search, sort, page), the ad-hoc result,
the locked-column set and the render status. Intents update fields
synchronously and then await the executor; every load is tagged with a
sequence number so a response that arrives after a newer request was issued
is dropped instead of overwriting fresher rows.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence

from backend.errors import EmptyResultNotice, QueryExecutionError
from backend.executor import QueryExecutor
from backend.models import EMPTY_RESULT, ResultSet, SortDirection, SortSpec, TableDescriptor
from config.grid import GridConfig
from ui.grid.column_lock import LockedColumnSet
from ui.grid.sinks import LoggingNotificationSink, Notification, NotificationSink
from ui.state.state_contracts import AdHocState, BrowsingState, GridSnapshot, LoadStatus, Mode
from utils.query_builder import build_browse_queries

StateListener = Callable[["GridState"], None]


def next_sort(current: Optional[SortSpec], column: str) -> Optional[SortSpec]:
    """Sort cycle for a header click: asc, then desc, then no sort.

    Clicking a different column always starts at ascending.
    """
    if current is None or current.column != column:
        return SortSpec(column, SortDirection.ASCENDING)
    if current.direction is SortDirection.ASCENDING:
        return SortSpec(column, SortDirection.DESCENDING)
    return None


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp a page number into ``[1, total_pages]`` (1 when there are no pages)."""
    return max(1, min(page, max(total_pages, 1)))


def _checked_result(result: Any, sql: Optional[str]) -> ResultSet:
    """Re-validate an executor response; a malformed shape is a QueryExecutionError."""
    try:
        return ResultSet.from_rows(result.column_names, result.rows)
    except (AttributeError, TypeError, ValueError) as e:
        raise QueryExecutionError(f"Malformed result: {e}", sql=sql, original=e) from e


def _count_from(result: ResultSet) -> int:
    if len(result.column_names) != 1 or result.row_count != 1:
        raise QueryExecutionError(
            f"Count query returned {result.row_count} rows x {len(result.column_names)} columns"
        )
    value = result.rows[0][0]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryExecutionError(f"Count query returned a non-count value: {value!r}")
    return value


class GridState:
    """State machine behind one grid view. Not shared between views."""

    def __init__(
        self,
        executor: QueryExecutor,
        tables: Iterable[TableDescriptor] = (),
        notifier: Optional[NotificationSink] = None,
        config: Optional[GridConfig] = None,
        logger_obj: Optional[logging.Logger] = None,
        schema_loader: Optional[Callable[[], Iterable[TableDescriptor]]] = None,
    ) -> None:
        self.executor = executor
        self.schema_loader = schema_loader
        self.config = config or GridConfig.from_settings()
        self.notifier = notifier or LoggingNotificationSink()
        self.logger = logger_obj or logging.getLogger(__name__)

        self._tables: dict[str, TableDescriptor] = {}
        self.set_tables(tables)

        self._mode = Mode.BROWSING
        self._status = LoadStatus.EMPTY
        self._browsing = BrowsingState(page_size=self.config.page_size)
        self._ad_hoc: Optional[AdHocState] = None
        self._result: ResultSet = EMPTY_RESULT
        self._locked = LockedColumnSet()
        self._last_sql: Optional[str] = None
        self._error_message: Optional[str] = None

        # Last applied browsing page, kept while an ad-hoc result is shown
        self._browse_cache: Optional[tuple[tuple[Any, ...], ResultSet, Optional[str]]] = None

        self._issued_seq = 0
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------ schema
    def set_tables(self, tables: Iterable[TableDescriptor]) -> None:
        """Install the table list supplied by the schema source."""
        self._tables = {table.name: table for table in tables}
        self.logger.debug(f"Grid knows {len(self._tables)} tables")

    @property
    def tables(self) -> list[TableDescriptor]:
        return list(self._tables.values())

    def get_table(self, name: Optional[str]) -> Optional[TableDescriptor]:
        return self._tables.get(name) if name else None

    def refresh_tables(self) -> bool:
        """Reload the table list from the schema loader after the database may have changed.

        A changed table list or row count also drops the cached browsing page.
        """
        if self.schema_loader is None:
            return False
        try:
            tables = list(self.schema_loader())
        except Exception as e:
            self.logger.error(f"Could not refresh table list: {e}", exc_info=True)
            return False
        before = {name: table.row_count for name, table in self._tables.items()}
        self.set_tables(tables)
        if before != {name: table.row_count for name, table in self._tables.items()}:
            self.logger.info("Table list changed, dropping cached browsing page")
            self._browse_cache = None
        return True

    # --------------------------------------------------------------- listeners
    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                self.logger.exception("Grid state listener failed")

    def _notify(self, title: str, description: str = "", is_error: bool = False) -> None:
        self.notifier.notify(Notification(title=title, description=description, is_error=is_error))

    # ------------------------------------------------------------- read access
    def get_visible_columns(self) -> list[str]:
        return list(self._result.column_names)

    def get_visible_rows(self) -> list[list[Any]]:
        return [list(row) for row in self._result.rows]

    def get_current_table(self) -> Optional[str]:
        return self._browsing.table_name

    def get_mode(self) -> Mode:
        return self._mode

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def browsing(self) -> BrowsingState:
        return self._browsing

    @property
    def locked_columns(self) -> LockedColumnSet:
        return self._locked.copy()

    @property
    def total_row_count(self) -> int:
        if self._mode is Mode.AD_HOC:
            return self._result.row_count
        return self._browsing.total_row_count

    @property
    def total_pages(self) -> int:
        if self._mode is Mode.AD_HOC:
            return 1 if self._result.row_count else 0
        return self._browsing.total_pages

    @property
    def ad_hoc(self) -> Optional[AdHocState]:
        """The ad-hoc result being shown, if any."""
        return self._ad_hoc

    @property
    def current_table_descriptor(self) -> Optional[TableDescriptor]:
        """Schema of the browsed table; None while an ad-hoc result is shown."""
        if self._mode is Mode.AD_HOC:
            return None
        return self.get_table(self._browsing.table_name)

    def empty_notice(self) -> Optional[EmptyResultNotice]:
        if self._status is not LoadStatus.EMPTY:
            return None
        search = self._browsing.search_term if self._mode is Mode.BROWSING else ""
        return EmptyResultNotice.for_search(search)

    def snapshot(self) -> GridSnapshot:
        browsing = self._browsing
        ad_hoc = self._mode is Mode.AD_HOC
        return GridSnapshot(
            mode=self._mode,
            status=self._status,
            table_name=browsing.table_name,
            search_term="" if ad_hoc else browsing.search_term,
            sort=None if ad_hoc else browsing.sort,
            page_number=1 if ad_hoc else browsing.page_number,
            page_size=browsing.page_size,
            total_row_count=self.total_row_count,
            total_pages=self.total_pages,
            column_names=self._result.column_names,
            rows=self._result.rows,
            locked_columns=tuple(self._locked),
            last_sql=self._last_sql,
            error_message=self._error_message,
            empty_notice=self.empty_notice(),
            ad_hoc=self._ad_hoc,
        )

    # ----------------------------------------------------------------- intents
    def _reject(self, intent: str, reason: str) -> bool:
        self.logger.warning(f"Ignoring {intent}: {reason}")
        return False

    def _require_browsing(self, intent: str) -> bool:
        if self._mode is not Mode.BROWSING:
            return self._reject(intent, "grid is showing an ad-hoc result")
        if not self._browsing.table_name:
            return self._reject(intent, "no table selected")
        return True

    async def select_table(self, name: str) -> bool:
        """Switch to ``name`` with default browsing parameters and load page 1."""
        table = self.get_table(name)
        if table is None:
            self._notify("Unknown table", f"Table '{name}' is not part of the loaded database", is_error=True)
            return self._reject("select_table", f"unknown table {name!r}")

        self.logger.info(f"Selecting table '{name}'")
        self._browsing = self._browsing.reset_for(name)
        self._mode = Mode.BROWSING
        self._ad_hoc = None
        self._browse_cache = None
        self._locked.clear()
        return await self.load()

    async def set_search(self, term: str) -> bool:
        """Filter rows containing ``term`` in any column; returns to page 1."""
        if not self._require_browsing("set_search"):
            return False
        self._browsing = self._browsing.with_changes(search_term=term or "", page_number=1)
        return await self.load()

    async def set_sort(self, column: str) -> bool:
        """Advance the sort cycle for ``column``; returns to page 1."""
        if not self._require_browsing("set_sort"):
            return False
        table = self.get_table(self._browsing.table_name)
        if table is None or table.get_column(column) is None:
            return self._reject("set_sort", f"unknown column {column!r}")
        sort = next_sort(self._browsing.sort, column)
        self._browsing = self._browsing.with_changes(sort=sort, page_number=1)
        return await self.load()

    async def set_page(self, page: int) -> bool:
        """Go to ``page``, clamped into the valid page range."""
        if not self._require_browsing("set_page"):
            return False
        try:
            requested = int(page)
        except (TypeError, ValueError):
            return self._reject("set_page", f"invalid page {page!r}")
        clamped = clamp_page(requested, self._browsing.total_pages)
        if clamped != requested:
            self.logger.warning(f"Page {requested} out of range, clamped to {clamped}")
        self._browsing = self._browsing.with_changes(page_number=clamped)
        return await self.load()

    def toggle_column_lock(self, column_index: int) -> Optional[bool]:
        """Lock or unlock a displayed column; returns the new lock state."""
        if not 0 <= column_index < len(self._result.column_names):
            self._reject("toggle_column_lock", f"column index {column_index} out of range")
            return None
        locked = self._locked.toggle(column_index)
        self._emit()
        return locked

    def submit_ad_hoc_result(
        self, column_names: Sequence[str], rows: Sequence[Sequence[Any]], sql: Optional[str] = None
    ) -> bool:
        """Show a one-shot result. Browsing parameters are kept for later."""
        try:
            result = ResultSet.from_rows(column_names, rows)
        except (TypeError, ValueError) as e:
            self._notify("Invalid query result", str(e), is_error=True)
            return self._reject("submit_ad_hoc_result", str(e))

        if self._mode is Mode.BROWSING and self._status in (LoadStatus.READY, LoadStatus.EMPTY):
            self._browse_cache = (self._browsing.params_key(), self._result, self._last_sql)

        # Any in-flight browsing load is now stale
        self._issued_seq += 1
        self._mode = Mode.AD_HOC
        self._ad_hoc = AdHocState(column_names=result.column_names, rows=result.rows, sql=sql)
        self._result = result
        self._last_sql = sql
        self._error_message = None
        self._status = LoadStatus.READY if result.rows else LoadStatus.EMPTY
        self._locked.clear()
        self.logger.info(f"Showing ad-hoc result: {result.row_count} rows x {len(result.column_names)} columns")
        self._emit()
        return True

    async def run_ad_hoc_query(self, sql: str) -> bool:
        """Execute free-form SQL and show its result in ad-hoc mode."""
        if not sql or not sql.strip():
            self._notify(
                "No query to execute",
                "Enter a SQL query to run against the database",
                is_error=True,
            )
            return False
        try:
            result = _checked_result(await self.executor.execute(sql), sql)
        except Exception as e:
            self.logger.error(f"Ad-hoc SQL query error: {e}", exc_info=True)
            self._notify("Query execution failed", str(e), is_error=True)
            return False

        if result.column_names:
            self._notify("Query executed successfully", f"Returned {result.row_count} rows")
        else:
            self._notify("Query executed", "No results returned")
        if not self.submit_ad_hoc_result(result.column_names, result.rows, sql=sql):
            return False
        # The statement may have created, dropped or modified tables
        self.refresh_tables()
        return True

    async def return_to_browsing(self) -> bool:
        """Leave ad-hoc mode and resume the last browsing parameters."""
        if self._mode is Mode.BROWSING:
            return False
        self._mode = Mode.BROWSING
        self._ad_hoc = None
        self._locked.clear()

        cache, self._browse_cache = self._browse_cache, None
        if cache is not None and cache[0] == self._browsing.params_key():
            _, result, sql = cache
            self._result = result
            self._last_sql = sql
            self._error_message = None
            self._status = LoadStatus.READY if result.rows else LoadStatus.EMPTY
            self.logger.info("Restored cached browsing page")
            self._emit()
            return True

        if not self._browsing.table_name:
            self._result = EMPTY_RESULT
            self._status = LoadStatus.EMPTY
            self._emit()
            return True
        return await self.load()

    # -------------------------------------------------------------------- load
    def _apply_failure(self, message: str) -> None:
        self._result = EMPTY_RESULT
        self._locked.clear()
        self._browsing = self._browsing.with_changes(total_row_count=0)
        self._status = LoadStatus.ERROR
        self._error_message = message
        self._notify("Query failed", message, is_error=True)
        self._emit()

    async def load(self) -> bool:
        """Fetch the current browsing page; True when its response was applied."""
        if self._mode is not Mode.BROWSING or not self._browsing.table_name:
            return False

        table = self.get_table(self._browsing.table_name)
        columns = table.columns if table else ()
        params = self._browsing
        try:
            queries = build_browse_queries(
                params.table_name,
                columns,
                params.search_term,
                params.sort,
                params.page_number,
                params.page_size,
            )
        except ValueError as e:
            self.logger.error(f"Could not build browse query: {e}")
            self._apply_failure(str(e))
            return False

        self._issued_seq += 1
        seq = self._issued_seq
        self._status = LoadStatus.LOADING
        self._last_sql = queries.row_query
        self._error_message = None
        self.logger.debug(f"Load #{seq}: {queries.row_query} params={queries.params}")
        self._emit()

        try:
            rows_result, count_result = await asyncio.gather(
                self.executor.execute(queries.row_query, queries.params),
                self.executor.execute(queries.count_query, queries.params),
            )
            rows_result = _checked_result(rows_result, queries.row_query)
            total = _count_from(_checked_result(count_result, queries.count_query))
        except Exception as e:
            if seq != self._issued_seq:
                self.logger.debug(f"Discarding failure of superseded load #{seq}: {e}")
                return False
            self.logger.error(f"Error loading table '{params.table_name}': {e}", exc_info=True)
            self._apply_failure(str(e))
            return False

        if seq != self._issued_seq:
            self.logger.debug(f"Discarding superseded load #{seq} (latest is #{self._issued_seq})")
            return False

        self._browsing = self._browsing.with_changes(total_row_count=total)
        total_pages = self._browsing.total_pages
        last_page = max(total_pages, 1)
        if self._browsing.page_number > last_page:
            # Rows disappeared since the page was chosen; land on the last page
            self.logger.info(f"Page {self._browsing.page_number} beyond {total_pages} pages, reloading page {last_page}")
            self._browsing = self._browsing.with_changes(page_number=last_page)
            return await self.load()

        if rows_result.column_names != self._result.column_names:
            # Locked indices only make sense against the columns they were set on
            self._locked.clear()
        self._result = rows_result
        self._status = LoadStatus.READY if rows_result.rows else LoadStatus.EMPTY
        self.logger.info(
            f"Loaded '{params.table_name}' page {params.page_number}/{max(total_pages, 1)}: "
            f"{rows_result.row_count} of {total} rows"
        )
        self._emit()
        return True

    async def reload(self) -> bool:
        """Retry the current browsing request, e.g. after data changed."""
        return await self.load()

    def destroy(self) -> None:
        """Release held results and listeners."""
        self._issued_seq += 1
        self._listeners.clear()
        self._result = EMPTY_RESULT
        self._ad_hoc = None
        self._browse_cache = None
        self._locked.clear()
        self._status = LoadStatus.EMPTY
