"""Row, column and cell operations shared by browsing and ad-hoc modes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from backend.errors import ClipboardError
from ui.grid.sinks import ClipboardSink, Notification, NotificationSink
from ui.state.grid_state import GridState
from utils.value_formatter import format_for_inspection, full_value_of, inspection_label, looks_like_json


@dataclass(frozen=True)
class CellInspection:
    """Content for the full-value viewer."""

    full_value: str
    column_name: str
    is_json: bool
    label: str
    formatted: str

    @classmethod
    def from_value(cls, full_value: str, column_name: str) -> "CellInspection":
        return cls(
            full_value=full_value,
            column_name=column_name,
            is_json=looks_like_json(full_value),
            label=inspection_label(full_value),
            formatted=format_for_inspection(full_value),
        )

    @property
    def title(self) -> str:
        return f"Cell Content - {self.column_name}" if self.column_name else "Cell Content"


def row_text(row) -> str:
    """Tab-separated full values of one row."""
    return "\t".join(full_value_of(value) for value in row)


def column_text(rows, column_index: int) -> str:
    """Full values of one column, one per line."""
    return "\n".join(full_value_of(row[column_index]) for row in rows)


class CellActions:
    """Copy and inspect operations over the rows currently rendered."""

    def __init__(
        self,
        state: GridState,
        clipboard: ClipboardSink,
        notifier: NotificationSink,
        logger_obj: Optional[logging.Logger] = None,
    ) -> None:
        self.state = state
        self.clipboard = clipboard
        self.notifier = notifier
        self.logger = logger_obj or logging.getLogger(__name__)

    def _copy(self, text: str, description: str) -> bool:
        try:
            self.clipboard.write(text)
        except ClipboardError as e:
            self.logger.warning(f"Clipboard write failed for {description}: {e}")
            self.notifier.notify(
                Notification(title="Copy failed", description="Could not copy to clipboard", is_error=True)
            )
            return False
        self.notifier.notify(Notification(title="Copied!", description=f"{description} copied to clipboard"))
        return True

    def copy_row(self, row_index: int) -> bool:
        rows = self.state.get_visible_rows()
        if not 0 <= row_index < len(rows):
            self.logger.warning(f"Ignoring copy_row: row index {row_index} out of range")
            return False
        return self._copy(row_text(rows[row_index]), "Row data")

    def copy_column(self, column_index: int) -> bool:
        columns = self.state.get_visible_columns()
        if not 0 <= column_index < len(columns):
            self.logger.warning(f"Ignoring copy_column: column index {column_index} out of range")
            return False
        text = column_text(self.state.get_visible_rows(), column_index)
        return self._copy(text, f'Column "{columns[column_index]}"')

    def inspect_cell(self, row_index: int, column_index: int) -> Optional[CellInspection]:
        """Untruncated content of one cell, whatever the grid displayed."""
        rows = self.state.get_visible_rows()
        columns = self.state.get_visible_columns()
        if not (0 <= row_index < len(rows) and 0 <= column_index < len(columns)):
            self.logger.warning(f"Ignoring inspect_cell: ({row_index}, {column_index}) out of range")
            return None
        return CellInspection.from_value(full_value_of(rows[row_index][column_index]), columns[column_index])

    def copy_inspected(self, inspection: CellInspection) -> bool:
        """Copy the untruncated value shown in the viewer."""
        return self._copy(inspection.full_value, "Content")
