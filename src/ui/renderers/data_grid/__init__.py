"""Data grid page package.

- Grid rendering (GridRenderer)
- Streamlit clipboard/notification sinks
- CSV export of the visible rows
"""

from .grid_renderer import GridRenderer
from .sinks import SessionClipboard, StreamlitNotificationSink

__all__ = [
    "GridRenderer",
    "SessionClipboard",
    "StreamlitNotificationSink",
]
