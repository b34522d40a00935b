"""Typed contracts for the grid state machine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from backend.errors import EmptyResultNotice
from backend.models import SortSpec


class Mode(str, Enum):
    """Which source drives the grid."""

    BROWSING = "browsing"
    AD_HOC = "ad_hoc"


class LoadStatus(str, Enum):
    """What the renderer should show."""

    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class BrowsingState:
    """Search/sort/page parameters against one named table."""

    table_name: Optional[str] = None
    search_term: str = ""
    sort: Optional[SortSpec] = None
    page_number: int = 1
    page_size: int = 50
    total_row_count: int = 0

    def reset_for(self, table_name: str) -> "BrowsingState":
        return BrowsingState(table_name=table_name, page_size=self.page_size)

    def params_key(self) -> tuple[Any, ...]:
        """Identity of the request these parameters produce."""
        return (self.table_name, self.search_term, self.sort, self.page_number, self.page_size)

    @property
    def total_pages(self) -> int:
        return -(-self.total_row_count // self.page_size) if self.total_row_count else 0

    def with_changes(self, **changes: Any) -> "BrowsingState":
        return replace(self, **changes)


@dataclass(frozen=True)
class AdHocState:
    """One-shot externally supplied result."""

    column_names: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()
    sql: Optional[str] = None


@dataclass(frozen=True)
class GridSnapshot:
    """Immutable read projection handed to renderers."""

    mode: Mode
    status: LoadStatus
    table_name: Optional[str]
    search_term: str
    sort: Optional[SortSpec]
    page_number: int
    page_size: int
    total_row_count: int
    total_pages: int
    column_names: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...]
    locked_columns: tuple[int, ...]
    last_sql: Optional[str]
    error_message: Optional[str]
    empty_notice: Optional[EmptyResultNotice]
    ad_hoc: Optional[AdHocState] = None

    @property
    def is_browsing(self) -> bool:
        return self.mode is Mode.BROWSING
