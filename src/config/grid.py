"""Grid presentation configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .settings import Settings


@dataclass(frozen=True)
class GridConfig:
    """Sizing knobs shared by the grid state, formatter and layout."""

    page_size: int = Settings.PAGE_SIZE
    truncate_length: int = Settings.CELL_TRUNCATE_LENGTH
    locked_column_width_px: int = Settings.LOCKED_COLUMN_WIDTH_PX
    pager_window: int = Settings.PAGER_WINDOW

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.truncate_length < 1:
            raise ValueError(f"truncate_length must be positive, got {self.truncate_length}")
        if self.locked_column_width_px < 0:
            raise ValueError("locked_column_width_px cannot be negative")
        if self.pager_window < 1:
            raise ValueError("pager_window must be positive")

    @classmethod
    def from_settings(cls) -> "GridConfig":
        """Build a config from the current Settings values."""
        return cls(
            page_size=Settings.PAGE_SIZE,
            truncate_length=Settings.CELL_TRUNCATE_LENGTH,
            locked_column_width_px=Settings.LOCKED_COLUMN_WIDTH_PX,
            pager_window=Settings.PAGER_WINDOW,
        )
