from supervision_core.ui.notifications import (
    NoticeLevel,
    Notifier,
    logging_notifier,
    streamlit_notifier,
)

__all__ = ["NoticeLevel", "Notifier", "logging_notifier", "streamlit_notifier"]
