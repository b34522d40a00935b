"""
Main data grid page UI components.

Wires the session's GridState to the sidebar table picker, the search box,
the pager and the ad-hoc query editor; the grid body is delegated to
GridRenderer.
"""

import logging
from pathlib import Path
from typing import List, Optional

import streamlit as st

from backend.errors import QueryExecutionError
from backend.executor import DuckDBQueryExecutor
from backend.models import TableDescriptor
from backend.schema_source import DuckDBSchemaSource
from config.grid import GridConfig
from ui.grid.cell_actions import CellActions
from ui.grid.view_model import page_window, range_label
from ui.renderers.data_grid import GridRenderer, SessionClipboard, StreamlitNotificationSink
from ui.renderers.data_grid.async_bridge import run_async
from ui.renderers.data_grid.grid_exporter import export_file_name, snapshot_to_dataframe, to_csv_bytes
from ui.state.grid_state import GridState
from ui.state.session_manager import SessionStateManager
from ui.state.state_contracts import GridSnapshot


@st.cache_data(ttl=3600)
def load_table_descriptors(db_path: str, _logger_obj: Optional[logging.Logger] = None) -> List[TableDescriptor]:
    """Fetches the table list once per database file."""
    return DuckDBSchemaSource(Path(db_path), logger_obj=_logger_obj, read_only=False).load_tables()


class DataGridPageRenderer:
    """Handles rendering of the data grid page."""

    def __init__(self, db_path: Path, logger: logging.Logger, config: Optional[GridConfig] = None):
        """
        Initialize the page renderer.

        Args:
            db_path: Path to the database
            logger: Logger instance for error reporting
            config: Grid sizing; defaults to Settings values
        """
        self.db_path = db_path
        self.logger = logger
        self.config = config or GridConfig.from_settings()
        self.notifier = StreamlitNotificationSink(logger)

    # --- session wiring --------------------------------------------------
    def get_or_create_grid_state(self) -> GridState:
        """Return this session's GridState, building it on first use."""
        state = SessionStateManager.get_grid_state()
        if state is not None and SessionStateManager.get_grid_db_path() == str(self.db_path):
            state.notifier = self.notifier
            return state

        tables: List[TableDescriptor] = []
        try:
            tables = load_table_descriptors(str(self.db_path), _logger_obj=self.logger)
        except QueryExecutionError as e:
            self.logger.error(f"Could not load schema from {self.db_path}: {e}", exc_info=True)
            st.sidebar.error(f"DB error listing tables: {e}", icon="🔥")

        state = GridState(
            executor=DuckDBQueryExecutor(self.db_path, read_only=False, logger_obj=self.logger),
            tables=tables,
            notifier=self.notifier,
            config=self.config,
            logger_obj=self.logger,
            schema_loader=self._reload_schema,
        )
        SessionStateManager.set_grid_state(state, str(self.db_path))
        SessionStateManager.reset_interaction_state()
        return state

    def _reload_schema(self) -> List[TableDescriptor]:
        """Fresh table list after an ad-hoc statement; drops the cached one first."""
        load_table_descriptors.clear()
        return load_table_descriptors(str(self.db_path), _logger_obj=self.logger)

    # --- callbacks -------------------------------------------------------
    def _on_table_selected(self, state: GridState) -> None:
        name = st.session_state.get("grid_table_select")
        if name:
            run_async(state.select_table(name))

    def _on_search_changed(self, state: GridState) -> None:
        run_async(state.set_search(st.session_state.get("grid_search_input", "")))

    def _on_page(self, state: GridState, page: int) -> None:
        run_async(state.set_page(page))

    def _on_run_query(self, state: GridState) -> None:
        sql = st.session_state.get("ad_hoc_sql", "")
        run_async(state.run_ad_hoc_query(sql))

    def _on_back_to_table(self, state: GridState) -> None:
        run_async(state.return_to_browsing())

    # --- rendering -------------------------------------------------------
    def render_sidebar(self, state: GridState) -> None:
        st.sidebar.header("📚 Tables")
        tables = state.tables
        if not tables:
            st.sidebar.info(f"No tables found in {self.db_path}.")
            return

        names = [table.name for table in tables]
        current = state.get_current_table()
        st.sidebar.selectbox(
            "Browse table",
            options=names,
            index=names.index(current) if current in names else None,
            placeholder="Choose a table",
            key="grid_table_select",
            on_change=self._on_table_selected,
            kwargs={"state": state},
        )
        with st.sidebar.expander("Table overview", expanded=False):
            for table in tables:
                st.markdown(f"**{table.name}** · {table.row_count:,} rows · {len(table.columns)} columns")

    def render_page_header(self, snapshot: GridSnapshot) -> None:
        """Render the page title with a row-count badge."""
        title = snapshot.table_name if snapshot.is_browsing and snapshot.table_name else "Query Results"
        st.title(f"🗂️ {title}")
        st.caption(f"{snapshot.total_row_count:,} rows")
        if snapshot.ad_hoc is not None and snapshot.ad_hoc.sql:
            st.caption(f"Result of: `{snapshot.ad_hoc.sql.strip()[:200]}`")

    def render_controls(self, state: GridState, snapshot: GridSnapshot) -> None:
        """Search box and query editor toggle."""
        col_search, col_editor = st.columns([3, 1])
        with col_search:
            if st.session_state.get("grid_search_input") != snapshot.search_term and snapshot.is_browsing:
                st.session_state.grid_search_input = snapshot.search_term
            st.text_input(
                "Search data",
                key="grid_search_input",
                placeholder="Search data...",
                on_change=self._on_search_changed,
                kwargs={"state": state},
                disabled=not snapshot.is_browsing or not snapshot.table_name,
            )
        with col_editor:
            show = st.toggle("Query editor", value=SessionStateManager.get_show_query_editor())
            SessionStateManager.set_show_query_editor(show)

        if show:
            st.text_area("SQL", key="ad_hoc_sql", height=140, placeholder="SELECT * FROM ...")
            col_run, col_back = st.columns([1, 1])
            with col_run:
                st.button("▶️ Run query", key="run_ad_hoc_btn", on_click=self._on_run_query, kwargs={"state": state})
            with col_back:
                if not snapshot.is_browsing:
                    st.button(
                        "↩️ Back to table",
                        key="back_to_table_btn",
                        on_click=self._on_back_to_table,
                        kwargs={"state": state},
                    )

    def render_pagination(self, state: GridState, snapshot: GridSnapshot) -> None:
        """Pager below the grid; browsing mode only."""
        if not snapshot.is_browsing or snapshot.total_pages <= 1:
            return

        current = snapshot.page_number
        pages = page_window(current, snapshot.total_pages, self.config.pager_window)
        st.markdown(range_label(current, snapshot.page_size, snapshot.total_row_count))

        cols = st.columns(len(pages) + 2)
        with cols[0]:
            st.button(
                "◀ Previous",
                key="prev_page_btn",
                disabled=current == 1,
                on_click=self._on_page,
                kwargs={"state": state, "page": current - 1},
                use_container_width=True,
            )
        for col, page in zip(cols[1:-1], pages):
            with col:
                st.button(
                    str(page),
                    key=f"page_btn_{page}",
                    type="primary" if page == current else "secondary",
                    on_click=self._on_page,
                    kwargs={"state": state, "page": page},
                    use_container_width=True,
                )
        with cols[-1]:
            st.button(
                "Next ▶",
                key="next_page_btn",
                disabled=current == snapshot.total_pages,
                on_click=self._on_page,
                kwargs={"state": state, "page": current + 1},
                use_container_width=True,
            )

    def render_export(self, snapshot: GridSnapshot) -> None:
        """CSV download of the visible rows and the executed SQL."""
        if snapshot.rows:
            st.download_button(
                "⬇️ CSV",
                to_csv_bytes(snapshot_to_dataframe(snapshot)),
                export_file_name(snapshot),
                "text/csv",
                key="grid_csv_dl",
            )
        with st.expander("Show Executed SQL", expanded=False):
            st.code(snapshot.last_sql or "No SQL executed yet.", language="sql")

    def render(self) -> None:
        """Render the whole page."""
        state = self.get_or_create_grid_state()
        self.render_sidebar(state)

        snapshot = state.snapshot()
        self.render_page_header(snapshot)
        self.render_controls(state, snapshot)

        actions = CellActions(state, SessionClipboard(), self.notifier, logger_obj=self.logger)
        GridRenderer(state, actions, self.config, logger_obj=self.logger).render()

        # Intents above may have changed the state during this run
        snapshot = state.snapshot()
        self.render_pagination(state, snapshot)
        self.render_export(snapshot)
