"""Streamlit-backed clipboard and notification sinks."""

from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from backend.errors import ClipboardError
from ui.grid.sinks import Notification
from ui.state.session_manager import SessionStateManager

MAX_CLIPBOARD_CHARS = 5_000_000


class StreamlitNotificationSink:
    """Toasts for success, an error banner for failures."""

    def __init__(self, logger_obj: Optional[logging.Logger] = None) -> None:
        self.logger = logger_obj or logging.getLogger(__name__)

    def notify(self, notification: Notification) -> None:
        if notification.is_error:
            self.logger.warning(f"{notification.title}: {notification.description}")
            st.error(f"**{notification.title}**: {notification.description}", icon="🔥")
        else:
            st.toast(f"{notification.title} {notification.description}".strip(), icon="✅")


class SessionClipboard:
    """Keeps copied text in session state; the page shows it with a copy button.

    Browsers only allow clipboard writes from page scripts, so the text is
    handed to a code block whose built-in copy button completes the transfer.
    """

    def write(self, text: str) -> None:
        if not isinstance(text, str):
            raise ClipboardError(f"Clipboard accepts text only, got {type(text).__name__}")
        if len(text) > MAX_CLIPBOARD_CHARS:
            raise ClipboardError(f"{len(text):,} characters exceeds the clipboard limit")
        try:
            SessionStateManager.set_clipboard(text)
        except Exception as e:
            raise ClipboardError(str(e)) from e
