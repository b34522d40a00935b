"""
Locked-column layout.

Locked columns stick to the left edge while the grid scrolls horizontally.
They stack in ascending index order, each taking one fixed-width slot, so a
column's offset depends only on how many locked columns sit to its left.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from config.settings import Settings

DEFAULT_SLOT_WIDTH_PX = Settings.LOCKED_COLUMN_WIDTH_PX


class LockedColumnSet:
    """Insertion-ordered set of locked column indices."""

    def __init__(self, indices: Iterable[int] = ()):
        self._members: Dict[int, None] = {}
        for index in indices:
            self.add(index)

    def add(self, index: int) -> None:
        if index < 0:
            raise ValueError(f"Column index cannot be negative: {index}")
        self._members[index] = None

    def discard(self, index: int) -> None:
        self._members.pop(index, None)

    def toggle(self, index: int) -> bool:
        """Flip membership; returns True when the column is now locked."""
        if index in self._members:
            del self._members[index]
            return False
        self.add(index)
        return True

    def clear(self) -> None:
        self._members.clear()

    def copy(self) -> "LockedColumnSet":
        return LockedColumnSet(self._members)

    def __contains__(self, index: object) -> bool:
        return index in self._members

    def __iter__(self) -> Iterator[int]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LockedColumnSet):
            return list(self) == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"LockedColumnSet({list(self._members)!r})"


def offset_for(
    column_index: int,
    locked_columns: Iterable[int],
    slot_width: int = DEFAULT_SLOT_WIDTH_PX,
) -> Optional[int]:
    """
    Horizontal sticky offset of a column, in pixels.

    Args:
        column_index: Index of the column in the displayed column list
        locked_columns: Locked column indices, any order
        slot_width: Pixel width reserved per locked column

    Returns:
        ``slot_width`` times the number of locked columns with a smaller index,
        or None when the column is not locked and stays in normal flow.
    """
    locked = set(locked_columns)
    if column_index not in locked:
        return None
    return slot_width * sum(1 for index in locked if index < column_index)


def sticky_offsets(locked_columns: Iterable[int], slot_width: int = DEFAULT_SLOT_WIDTH_PX) -> Dict[int, int]:
    """Offsets of every locked column for one render pass."""
    return {
        index: position * slot_width
        for position, index in enumerate(sorted(set(locked_columns)))
    }
