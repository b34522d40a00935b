"""
Cell value formatting for the data grid.

Classifies a raw cell value, produces its display text and the untruncated
"full value" used by copy and inspect operations.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from config.settings import Settings

NULL_MARKER = "NULL"
ELLIPSIS = "..."
DEFAULT_TRUNCATE_LENGTH = Settings.CELL_TRUNCATE_LENGTH


@dataclass(frozen=True)
class FormattedCell:
    """Display form of one cell."""

    display: str
    is_truncated: bool
    full_value: str
    is_null: bool = False


def _to_text(value: Any) -> str:
    """Type-specific string form of a non-null value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        try:
            return json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(value)
    return str(value)


def format_cell_value(value: Any, truncate_length: int = DEFAULT_TRUNCATE_LENGTH) -> FormattedCell:
    """
    Format a raw value for the grid.

    Null becomes the NULL marker with ``full_value == "NULL"``. Mappings and
    sequences are pretty-printed as JSON in source key order, falling back to
    ``str()`` when they hold non-serializable values. Everything longer than
    ``truncate_length`` is cut and suffixed with an ellipsis.

    Args:
        value: Raw cell value from the executor
        truncate_length: Maximum number of characters shown before truncation

    Returns:
        FormattedCell with display text, truncation flag and full value
    """
    if value is None:
        return FormattedCell(display=NULL_MARKER, is_truncated=False, full_value=NULL_MARKER, is_null=True)

    if truncate_length < 1:
        raise ValueError(f"truncate_length must be positive, got {truncate_length}")

    text = _to_text(value)
    if len(text) > truncate_length:
        return FormattedCell(display=text[:truncate_length] + ELLIPSIS, is_truncated=True, full_value=text)
    return FormattedCell(display=text, is_truncated=False, full_value=text)


def full_value_of(value: Any) -> str:
    """Untruncated text for copy operations."""
    if value is None:
        return NULL_MARKER
    return _to_text(value)


def looks_like_json(text: str) -> bool:
    """True when ``text`` parses as JSON. The NULL marker never counts."""
    if not text or text == NULL_MARKER:
        return False
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True


def format_for_inspection(text: str) -> str:
    """Re-indent JSON text for the full-content viewer; other text is unchanged."""
    if not looks_like_json(text):
        return text
    return json.dumps(json.loads(text), indent=2, ensure_ascii=False)


def inspection_label(text: str) -> str:
    """Descriptive label for the full-content viewer."""
    if looks_like_json(text):
        return "JSON content (formatted for readability)"
    return "Cell content"
