"""
Centralized session state management for the Streamlit grid.

Each browser session owns exactly one GridState; it lives in
``st.session_state`` together with the clipboard buffer and the cell
currently open in the inspector.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Union

import streamlit as st

from ui.grid.cell_actions import CellInspection
from ui.state.grid_state import GridState


class SessionStateManager:
    """Manages Streamlit session state with type-safe accessors."""

    GRID_KEYS: Dict[str, Union[None, str, Callable]] = {
        "grid_state": None,
        "grid_db_path": None,
    }

    INTERACTION_KEYS: Dict[str, Union[None, str, bool, Callable]] = {
        "clipboard_text": "",
        "inspected_cell": None,
        "ad_hoc_sql": "",
        "show_query_editor": False,
    }

    @staticmethod
    def _default(value: Any) -> Any:
        return value() if callable(value) else value

    @classmethod
    def _apply_defaults(cls, key_defaults: Mapping[str, Any], overwrite: bool) -> None:
        for key, default_value in key_defaults.items():
            if overwrite or key not in st.session_state:
                st.session_state[key] = cls._default(default_value)

    @classmethod
    def initialize_all_session_state(cls) -> None:
        """Initialize all session state variables with their default values."""
        cls._apply_defaults({**cls.GRID_KEYS, **cls.INTERACTION_KEYS}, overwrite=False)

    @classmethod
    def reset_interaction_state(cls) -> None:
        """Clear clipboard and inspector state, e.g. after switching databases."""
        cls._apply_defaults(cls.INTERACTION_KEYS, overwrite=True)

    # Type-safe getters
    @classmethod
    def get_grid_state(cls) -> Optional[GridState]:
        """Get the grid state owned by this session."""
        return st.session_state.get("grid_state")

    @classmethod
    def get_grid_db_path(cls) -> Optional[str]:
        """Get the database path the session's grid was built for."""
        return st.session_state.get("grid_db_path")

    @classmethod
    def get_clipboard_text(cls) -> str:
        """Get the last copied text."""
        return st.session_state.get("clipboard_text", "")

    @classmethod
    def get_inspected_cell(cls) -> Optional[CellInspection]:
        """Get the cell currently open in the inspector."""
        return st.session_state.get("inspected_cell")

    @classmethod
    def get_show_query_editor(cls) -> bool:
        """Check if the ad-hoc query editor is expanded."""
        return st.session_state.get("show_query_editor", False)

    # Type-safe setters
    @classmethod
    def set_grid_state(cls, grid_state: GridState, db_path: str) -> None:
        """Install a new grid state, releasing the previous one."""
        previous = cls.get_grid_state()
        if previous is not None and previous is not grid_state:
            previous.destroy()
        st.session_state.grid_state = grid_state
        st.session_state.grid_db_path = db_path

    @classmethod
    def set_clipboard(cls, text: str) -> None:
        """Store copied text for the copy panel."""
        st.session_state.clipboard_text = text

    @classmethod
    def set_inspected_cell(cls, inspection: Optional[CellInspection]) -> None:
        """Open (or close, with None) the inspector."""
        st.session_state.inspected_cell = inspection

    @classmethod
    def set_show_query_editor(cls, show: bool) -> None:
        st.session_state.show_query_editor = show
