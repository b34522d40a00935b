from __future__ import annotations

# Standard Library Imports
import logging
import sys
from pathlib import Path

# Third-Party Imports
import streamlit as st

# Add the 'src' directory to sys.path
_CURRENT_FILE_DIR = Path(__file__).resolve().parent
_SRC_DIR = _CURRENT_FILE_DIR.parent

if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

# Local Application Imports
from config.settings import Settings
from ui.pages.data_grid_page import DataGridPageRenderer
from ui.state.session_manager import SessionStateManager
from utils.logger_setup import setup_logging

ui_logger = logging.getLogger("tablescope.ui")
if not ui_logger.handlers:
    setup_logging("tablescope.ui", console_output=True)

st.set_page_config(
    page_title="Tablescope – Data Grid",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "Get help": None,
        "Report a Bug": None,
        "About": None,
    },
)

Settings.ensure_directories()
SessionStateManager.initialize_all_session_state()

DB_PATH = Settings.get_db_path()
if not DB_PATH.exists():
    ui_logger.warning(f"Database {DB_PATH} does not exist.")
    st.warning(
        f"Database {DB_PATH} does not exist. Set {Settings.DB_PATH_ENV_VAR} to a DuckDB file to browse."
    )
    st.stop()

DataGridPageRenderer(DB_PATH, ui_logger).render()
