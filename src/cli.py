import asyncio
from pathlib import Path
from typing import NoReturn, Optional

import pandas as pd
import typer

from backend.errors import QueryExecutionError, format_exception_for_ui
from backend.executor import DuckDBQueryExecutor
from backend.schema_source import DuckDBSchemaSource
from config.grid import GridConfig
from config.settings import Settings
from ui.grid.sinks import LoggingNotificationSink
from ui.grid.view_model import range_label
from ui.state.grid_state import GridState
from ui.state.state_contracts import GridSnapshot, LoadStatus
from utils.logger_setup import setup_logging
from utils.value_formatter import format_cell_value

logger = setup_logging(logger_name="tablescope_cli", console_output=False)

app = typer.Typer(
    name="tablescope",
    help="Browse DuckDB tables as a paginated, sortable, searchable grid.",
    add_completion=False,
)

DbOption = typer.Option(None, "--db", help="DuckDB database file. Defaults to TABLESCOPE_DB_PATH or data/warehouse.duckdb.")


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _build_state(db: Optional[Path], config: GridConfig) -> GridState:
    db_path = Settings.get_db_path(db)
    tables = DuckDBSchemaSource(db_path, logger_obj=logger).load_tables()
    return GridState(
        executor=DuckDBQueryExecutor(db_path, read_only=False, logger_obj=logger),
        tables=tables,
        notifier=LoggingNotificationSink(logger),
        config=config,
        logger_obj=logger,
    )


def _grid_frame(snapshot: GridSnapshot, truncate_length: int) -> pd.DataFrame:
    rows = [[format_cell_value(value, truncate_length).display for value in row] for row in snapshot.rows]
    return pd.DataFrame(rows, columns=list(snapshot.column_names))


def _print_grid(snapshot: GridSnapshot, truncate_length: int) -> None:
    if snapshot.status is LoadStatus.ERROR:
        _fail(f"Query failed: {snapshot.error_message}")
    if snapshot.empty_notice:
        typer.echo(snapshot.empty_notice.message)
        return
    with pd.option_context("display.max_columns", None, "display.width", None, "display.max_colwidth", None):
        typer.echo(_grid_frame(snapshot, truncate_length).to_string(index=False))


@app.command()
def tables(db: Optional[Path] = DbOption):
    """
    List the tables of the database with their row counts.
    """
    try:
        descriptors = DuckDBSchemaSource(Settings.get_db_path(db), logger_obj=logger).load_tables()
    except QueryExecutionError as e:
        _fail(f"Error: {format_exception_for_ui(e)}")
    if not descriptors:
        typer.echo("No tables found.")
        return
    for table in descriptors:
        typer.echo(f"{table.name}\t{table.row_count} rows\t{len(table.columns)} columns")


@app.command()
def browse(
    table: str = typer.Argument(..., help="Table to browse."),
    search: str = typer.Option("", "--search", "-s", help="Case-sensitive text to look for in any column."),
    sort: Optional[str] = typer.Option(None, "--sort", help="Column to sort by (ascending)."),
    desc: bool = typer.Option(False, "--desc", help="Sort descending instead."),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number; clamped to the last page."),
    page_size: int = typer.Option(Settings.PAGE_SIZE, "--page-size", min=1),
    truncate: int = typer.Option(Settings.CELL_TRUNCATE_LENGTH, "--truncate", min=1, help="Cell display width."),
    db: Optional[Path] = DbOption,
):
    """
    Print one page of a table, optionally filtered and sorted.
    """
    config = GridConfig(page_size=page_size, truncate_length=truncate)
    try:
        state = _build_state(db, config)
    except QueryExecutionError as e:
        _fail(f"Error: {format_exception_for_ui(e)}")

    async def _drive() -> None:
        if not await state.select_table(table):
            if state.status is not LoadStatus.ERROR:
                _fail(f"Unknown table: {table}")
            return
        if search:
            await state.set_search(search)
        if sort:
            if not await state.set_sort(sort):
                _fail(f"Unknown column: {sort}")
            if desc:
                await state.set_sort(sort)
        if page != 1:
            await state.set_page(page)

    asyncio.run(_drive())
    snapshot = state.snapshot()
    _print_grid(snapshot, truncate)
    if snapshot.status is not LoadStatus.ERROR:
        typer.echo(
            f"\n{range_label(snapshot.page_number, snapshot.page_size, snapshot.total_row_count)}"
            f" (page {snapshot.page_number} of {max(snapshot.total_pages, 1)})"
        )


@app.command()
def query(
    sql: str = typer.Argument(..., help="SQL to run; its result is shown without paging."),
    truncate: int = typer.Option(Settings.CELL_TRUNCATE_LENGTH, "--truncate", min=1, help="Cell display width."),
    db: Optional[Path] = DbOption,
):
    """
    Run an ad-hoc query and print its result.
    """
    config = GridConfig(truncate_length=truncate)
    try:
        state = _build_state(db, config)
    except QueryExecutionError as e:
        _fail(f"Error: {format_exception_for_ui(e)}")

    if not asyncio.run(state.run_ad_hoc_query(sql)):
        history = getattr(state.notifier, "history", [])
        _fail(f"{history[-1].title}: {history[-1].description}" if history else "Query failed.")
    snapshot = state.snapshot()
    _print_grid(snapshot, truncate)
    typer.echo(f"\n{snapshot.total_row_count} rows")


if __name__ == "__main__":
    app()
