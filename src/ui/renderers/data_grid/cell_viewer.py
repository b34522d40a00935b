"""Full-content viewer for a single grid cell."""

from __future__ import annotations

import streamlit as st

from ui.grid.cell_actions import CellActions, CellInspection
from ui.state.session_manager import SessionStateManager


def render_cell_viewer(inspection: CellInspection, actions: CellActions) -> None:
    """Open the viewer dialog for ``inspection``."""

    @st.dialog(inspection.title, width="large")
    def _viewer() -> None:
        st.caption(inspection.label)
        st.code(inspection.formatted, language="json" if inspection.is_json else None, wrap_lines=True)
        col_copy, col_close = st.columns(2)
        with col_copy:
            if st.button("📋 Copy", key="cell_viewer_copy", use_container_width=True):
                actions.copy_inspected(inspection)
        with col_close:
            if st.button("Close", key="cell_viewer_close", use_container_width=True):
                SessionStateManager.set_inspected_cell(None)
                st.rerun()

    _viewer()
