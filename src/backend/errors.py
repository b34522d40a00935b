"""Error taxonomy for the grid engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

NO_DATA_MESSAGE = "No data available."
NO_SEARCH_MATCH_MESSAGE = "No data found matching your search."


class GridError(Exception):
    """Base class for grid engine failures."""


class QueryExecutionError(GridError):
    """The executor raised or returned a malformed result."""

    def __init__(self, message: str, sql: Optional[str] = None, original: Optional[BaseException] = None):
        self.message = message
        self.sql = sql
        self.original = original
        super().__init__(message)


class ClipboardError(GridError):
    """Writing to the clipboard sink failed."""


@dataclass(frozen=True)
class EmptyResultNotice:
    """Zero rows is a renderable state, not a failure."""

    message: str

    @classmethod
    def for_search(cls, search_term: str) -> "EmptyResultNotice":
        return cls(NO_SEARCH_MATCH_MESSAGE if search_term else NO_DATA_MESSAGE)


def format_exception_for_ui(exc: BaseException) -> str:
    """Formats an exception for display in the UI, similar to logger."""
    if isinstance(exc, QueryExecutionError) and exc.original is not None:
        exc = exc.original
    return f"{type(exc).__name__}: {exc}"
