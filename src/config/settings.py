"""Application-wide settings and configuration."""

import os
from pathlib import Path
from typing import Optional


class Settings:
    """Centralized application settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    DATA_DIR = PROJECT_ROOT / "data"
    LOGS_DIR = PROJECT_ROOT / "logs"

    # Default database settings
    DEFAULT_DB_PATH = DATA_DIR / "warehouse.duckdb"
    DB_PATH_ENV_VAR = "TABLESCOPE_DB_PATH"

    # Grid settings
    PAGE_SIZE = 50
    CELL_TRUNCATE_LENGTH = 100
    LOCKED_COLUMN_WIDTH_PX = 200
    PAGER_WINDOW = 5
    GRID_HEIGHT_PX = 560

    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_db_path(cls, custom_path: Optional[Path] = None) -> Path:
        """Get the database path: explicit override, then environment, then default."""
        if custom_path:
            return Path(custom_path)
        env_path = os.environ.get(cls.DB_PATH_ENV_VAR)
        if env_path:
            return Path(env_path)
        return cls.DEFAULT_DB_PATH
