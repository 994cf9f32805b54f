# =============================================================================
# supervision_core/errors/__init__.py
# Centralized Error Handling for the Supervision Collector
# =============================================================================
#
# The Streamlit-bound handlers live in supervision_core.errors.handlers and are
# imported from there by the UI layer so the core never pulls in Streamlit.

from .exceptions import (
    SupervisionError,
    StorageError,
    StorageCorruptionError,
    DeliveryError,
    GatewayQueryError,
    ReportGenerationError,
    ConfigurationError,
)

__all__ = [
    "SupervisionError",
    "StorageError",
    "StorageCorruptionError",
    "DeliveryError",
    "GatewayQueryError",
    "ReportGenerationError",
    "ConfigurationError",
]
