"""
Pure view models for the data grid.

Everything the renderer paints is computed here from a GridSnapshot so it can
be tested without a running Streamlit session.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List, Optional

from backend.models import SortDirection, TableDescriptor
from ui.grid.column_lock import sticky_offsets
from ui.state.state_contracts import GridSnapshot
from utils.value_formatter import format_cell_value

SORT_INDICATORS = {
    None: "↕",
    SortDirection.ASCENDING: "↑",
    SortDirection.DESCENDING: "↓",
}
PRIMARY_KEY_MARKER = "🔑"


@dataclass(frozen=True)
class HeaderCell:
    index: int
    name: str
    is_primary_key: bool
    sortable: bool
    sort_direction: Optional[SortDirection]
    locked: bool
    sticky_left: Optional[int]

    @property
    def sort_indicator(self) -> str:
        return SORT_INDICATORS[self.sort_direction] if self.sortable else ""


@dataclass(frozen=True)
class BodyCell:
    column_index: int
    column_name: str
    display: str
    full_value: str
    is_truncated: bool
    is_null: bool
    sticky_left: Optional[int]


def build_header(
    snapshot: GridSnapshot,
    table: Optional[TableDescriptor] = None,
    slot_width: int = 200,
) -> List[HeaderCell]:
    """Header cells; sort indicators only exist in browsing mode."""
    offsets = sticky_offsets(snapshot.locked_columns, slot_width)
    cells = []
    for index, name in enumerate(snapshot.column_names):
        column = table.get_column(name) if table else None
        direction = None
        if snapshot.is_browsing and snapshot.sort and snapshot.sort.column == name:
            direction = snapshot.sort.direction
        cells.append(
            HeaderCell(
                index=index,
                name=name,
                is_primary_key=bool(column and column.is_primary_key),
                sortable=snapshot.is_browsing,
                sort_direction=direction,
                locked=index in offsets,
                sticky_left=offsets.get(index),
            )
        )
    return cells


def build_body(snapshot: GridSnapshot, truncate_length: int, slot_width: int = 200) -> List[List[BodyCell]]:
    """Formatted cells of every rendered row."""
    offsets = sticky_offsets(snapshot.locked_columns, slot_width)
    body = []
    for row in snapshot.rows:
        cells = []
        for index, value in enumerate(row):
            formatted = format_cell_value(value, truncate_length)
            cells.append(
                BodyCell(
                    column_index=index,
                    column_name=snapshot.column_names[index],
                    display=formatted.display,
                    full_value=formatted.full_value,
                    is_truncated=formatted.is_truncated,
                    is_null=formatted.is_null,
                    sticky_left=offsets.get(index),
                )
            )
        body.append(cells)
    return body


def page_window(current_page: int, total_pages: int, window: int = 5) -> List[int]:
    """Up to ``window`` page numbers centred on the current page."""
    if total_pages <= 0:
        return []
    if total_pages <= window:
        return list(range(1, total_pages + 1))
    half = window // 2
    start = current_page - half
    start = max(1, min(start, total_pages - window + 1))
    return list(range(start, start + window))


def range_label(page: int, page_size: int, total_rows: int) -> str:
    """'Showing X to Y of N results' for the pager."""
    if total_rows <= 0:
        return "Showing 0 results"
    first = (page - 1) * page_size + 1
    last = min(page * page_size, total_rows)
    return f"Showing {first} to {last} of {total_rows} results"


def _sticky_style(left: Optional[int], background: str) -> str:
    if left is None:
        return ""
    return f' style="position: sticky; left: {left}px; z-index: 2; background: {background};"'


GRID_CSS = """
<style>
.ts-grid-wrap { overflow: auto; border: 1px solid #e5e7eb; border-radius: 8px; }
.ts-grid { border-collapse: collapse; width: 100%; font-size: 0.85rem; }
.ts-grid th { position: sticky; top: 0; background: #f9fafb; text-align: left; padding: 6px 12px;
  min-width: 150px; border-bottom: 1px solid #e5e7eb; z-index: 1; }
.ts-grid td { padding: 6px 12px; max-width: 320px; white-space: nowrap; overflow: hidden;
  text-overflow: ellipsis; border-bottom: 1px solid #f3f4f6; }
.ts-grid .ts-null { color: #9ca3af; font-style: italic; }
.ts-grid .ts-locked { box-shadow: 2px 0 4px rgba(0, 0, 0, 0.08); }
.ts-grid .ts-rownum { color: #9ca3af; }
</style>
"""


def render_grid_html(
    header: List[HeaderCell],
    body: List[List[BodyCell]],
    height_px: int = 560,
    first_row_number: int = 1,
) -> str:
    """HTML table with sticky header and locked columns. All text is escaped."""
    parts = [GRID_CSS, f'<div class="ts-grid-wrap" style="max-height: {height_px}px;">', '<table class="ts-grid">']

    parts.append('<thead><tr><th class="ts-rownum">#</th>')
    for cell in header:
        label = html.escape(cell.name)
        if cell.is_primary_key:
            label = f"{PRIMARY_KEY_MARKER} {label}"
        if cell.sort_indicator:
            label = f"{label} {cell.sort_indicator}"
        if cell.locked:
            label = f"🔒 {label}"
        css = ' class="ts-locked"' if cell.locked else ""
        parts.append(f"<th{css}{_sticky_style(cell.sticky_left, '#f3f4f6')}>{label}</th>")
    parts.append("</tr></thead><tbody>")

    for offset, row in enumerate(body):
        parts.append(f'<tr><td class="ts-rownum">{first_row_number + offset}</td>')
        for cell in row:
            classes = []
            if cell.is_null:
                classes.append("ts-null")
            if cell.sticky_left is not None:
                classes.append("ts-locked")
            css = f' class="{" ".join(classes)}"' if classes else ""
            title = f' title="{html.escape(cell.full_value, quote=True)}"' if cell.is_truncated else ""
            parts.append(f"<td{css}{title}{_sticky_style(cell.sticky_left, '#ffffff')}>{html.escape(cell.display)}</td>")
        parts.append("</tr>")

    parts.append("</tbody></table></div>")
    return "".join(parts)
