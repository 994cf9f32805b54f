# =============================================================================
# supervision_core/errors/handlers.py
# Error Handling Utilities for the Streamlit layer
# =============================================================================

from __future__ import annotations
import traceback
from typing import Optional, Callable, TypeVar

import streamlit as st

from supervision_core.logging import get_logger
from .exceptions import SupervisionError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Centralized error handling for the UI layer.

    Args:
        error: The exception to handle
        show_user_message: Whether to display the error via st.toast
        log_error: Whether to log the error
        user_message: Custom message to show user (uses error message if None)
    """
    if isinstance(error, SupervisionError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=True,
        )

    # Notices are transient; nothing is presented as a blocking dialog
    if show_user_message:
        if recoverable:
            st.toast(f"Error: {message}", icon="⚠️")
        else:
            st.toast(f"Configuration problem: {message}", icon="🛑")


def safe_execute(
    func: Callable[..., T],
    *args,
    default: Optional[T] = None,
    error_message: Optional[str] = None,
    reraise: bool = False,
    **kwargs,
) -> Optional[T]:
    """
    Execute a function with automatic error handling.

    Usage:
        stats = safe_execute(
            compute_dashboard_stats,
            records,
            default=None,
            error_message="Failed to compute dashboard"
        )
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        handle_error(e, user_message=error_message)
        if reraise:
            raise
        return default


class ErrorContext:
    """
    Context manager for error handling with automatic logging and user feedback.

    Usage:
        with ErrorContext("Generating AI report"):
            text = generator.generate(prompt)
    """

    def __init__(self, operation: str, recoverable: bool = True):
        self.operation = operation
        self.recoverable = recoverable

    def __enter__(self) -> ErrorContext:
        logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            logger.info(f"Completed: {self.operation}")
            return False

        if isinstance(exc_val, SupervisionError):
            handle_error(exc_val)
        else:
            handle_error(exc_val, user_message=f"Error during: {self.operation}")

        # Suppress exception if recoverable
        return self.recoverable
