"""
Streamlit renderer for the data grid.

Widgets only emit intents (sort, lock, copy, inspect) through callbacks; the
grid itself is painted from a GridSnapshot via the pure view model.
"""

import logging
from typing import Optional

import streamlit as st

from config.grid import GridConfig
from config.settings import Settings
from ui.grid.cell_actions import CellActions
from ui.grid.view_model import build_body, build_header, render_grid_html
from ui.renderers.data_grid.async_bridge import run_async
from ui.renderers.data_grid.cell_viewer import render_cell_viewer
from ui.state.grid_state import GridState
from ui.state.session_manager import SessionStateManager
from ui.state.state_contracts import GridSnapshot, LoadStatus


class GridRenderer:
    """Renders header, body and per-row/column tools for one GridState."""

    def __init__(
        self,
        state: GridState,
        actions: CellActions,
        config: Optional[GridConfig] = None,
        logger_obj: Optional[logging.Logger] = None,
    ) -> None:
        self.state = state
        self.actions = actions
        self.config = config or state.config
        self.logger = logger_obj or logging.getLogger(__name__)

    # --- callbacks -------------------------------------------------------
    def _on_sort(self, column: str) -> None:
        run_async(self.state.set_sort(column))

    def _on_toggle_lock(self, column_index: int) -> None:
        self.state.toggle_column_lock(column_index)

    def _on_copy_column(self, column_index: int) -> None:
        self.actions.copy_column(column_index)

    def _on_copy_row(self, row_index: int) -> None:
        self.actions.copy_row(row_index)

    def _on_inspect(self, row_index: int, column_index: int) -> None:
        SessionStateManager.set_inspected_cell(self.actions.inspect_cell(row_index, column_index))

    def _on_retry(self) -> None:
        run_async(self.state.reload())

    # --- rendering -------------------------------------------------------
    def render(self) -> None:
        """Render the grid for the current snapshot."""
        snapshot = self.state.snapshot()

        if snapshot.status is LoadStatus.ERROR:
            st.error(f"❌ SQL Query Error: {snapshot.error_message}")
            st.button("🔄 Retry", key="grid_retry_btn", on_click=self._on_retry)
            return

        if not snapshot.column_names:
            st.info("Select a table from the sidebar or run a query to see data here.")
            return

        self._render_column_tools(snapshot)

        header = build_header(snapshot, self.state.current_table_descriptor, self.config.locked_column_width_px)
        body = build_body(snapshot, self.config.truncate_length, self.config.locked_column_width_px)
        first_row = (snapshot.page_number - 1) * snapshot.page_size + 1 if snapshot.is_browsing else 1
        st.markdown(
            render_grid_html(header, body, height_px=Settings.GRID_HEIGHT_PX, first_row_number=first_row),
            unsafe_allow_html=True,
        )

        if snapshot.status is LoadStatus.EMPTY and snapshot.empty_notice:
            st.info(snapshot.empty_notice.message)
        else:
            self._render_row_tools(snapshot)

        self._render_clipboard_panel()
        inspection = SessionStateManager.get_inspected_cell()
        if inspection is not None:
            render_cell_viewer(inspection, self.actions)

    def _render_column_tools(self, snapshot: GridSnapshot) -> None:
        """Sort, lock and copy controls for a chosen column."""
        col_pick, col_sort, col_lock, col_copy = st.columns([3, 1, 1, 1])
        with col_pick:
            column_index = st.selectbox(
                "Column",
                options=list(range(len(snapshot.column_names))),
                format_func=lambda i: snapshot.column_names[i],
                key="grid_column_pick",
            )
        if column_index is None or column_index >= len(snapshot.column_names):
            return
        column_name = snapshot.column_names[column_index]
        is_locked = column_index in snapshot.locked_columns

        with col_sort:
            st.button(
                "⇅ Sort",
                key="grid_sort_btn",
                on_click=self._on_sort,
                kwargs={"column": column_name},
                disabled=not snapshot.is_browsing,
                help="Cycle ascending, descending, unsorted" if snapshot.is_browsing else "Sorting is off for query results",
                use_container_width=True,
            )
        with col_lock:
            st.button(
                "🔓 Unlock" if is_locked else "🔒 Lock",
                key="grid_lock_btn",
                on_click=self._on_toggle_lock,
                kwargs={"column_index": column_index},
                use_container_width=True,
            )
        with col_copy:
            st.button(
                "📋 Column",
                key="grid_copy_column_btn",
                on_click=self._on_copy_column,
                kwargs={"column_index": column_index},
                help=f'Copy every value of "{column_name}" on this page',
                use_container_width=True,
            )

    def _render_row_tools(self, snapshot: GridSnapshot) -> None:
        """Copy a row or open a cell in the viewer."""
        row_count = len(snapshot.rows)
        first_row = (snapshot.page_number - 1) * snapshot.page_size + 1 if snapshot.is_browsing else 1

        col_row, col_cell, col_copy, col_inspect = st.columns([2, 3, 1, 1])
        with col_row:
            row_number = st.number_input(
                "Row #",
                min_value=first_row,
                max_value=first_row + row_count - 1,
                value=first_row,
                step=1,
                key=f"grid_row_pick_{first_row}_{row_count}",
            )
        with col_cell:
            column_index = st.selectbox(
                "Cell column",
                options=list(range(len(snapshot.column_names))),
                format_func=lambda i: snapshot.column_names[i],
                key="grid_cell_column_pick",
            )
        row_index = int(row_number) - first_row
        with col_copy:
            st.button(
                "📋 Row",
                key="grid_copy_row_btn",
                on_click=self._on_copy_row,
                kwargs={"row_index": row_index},
                use_container_width=True,
            )
        with col_inspect:
            st.button(
                "🔍 Cell",
                key="grid_inspect_btn",
                on_click=self._on_inspect,
                kwargs={"row_index": row_index, "column_index": column_index or 0},
                use_container_width=True,
            )

    def _render_clipboard_panel(self) -> None:
        text = SessionStateManager.get_clipboard_text()
        if text:
            with st.expander("📋 Copied content", expanded=True):
                st.code(text, language=None)
