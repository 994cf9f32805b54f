# =============================================================================
# supervision_core/ui/notifications.py
# Transient user notices
# =============================================================================

from __future__ import annotations
from enum import Enum
from typing import Callable

from supervision_core.logging import get_logger

logger = get_logger(__name__)


class NoticeLevel(Enum):
    """Notice severity, mirrors the banner colours of the form."""
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


Notifier = Callable[[str, NoticeLevel], None]

_ICONS = {
    NoticeLevel.SUCCESS: "✅",
    NoticeLevel.INFO: "ℹ️",
    NoticeLevel.WARNING: "📴",
    NoticeLevel.ERROR: "⚠️",
}


def logging_notifier(message: str, level: NoticeLevel) -> None:
    """Default notifier for headless use: notices go to the log."""
    logger.info(f"[notice:{level.value}] {message}")


def streamlit_notifier(message: str, level: NoticeLevel) -> None:
    """Render a notice as a Streamlit toast."""
    import streamlit as st

    st.toast(message, icon=_ICONS.get(level))
