# =============================================================================
# supervision_core/errors/exceptions.py
# Custom Exception Hierarchy for the Supervision Collector
# =============================================================================

from typing import Optional, Dict, Any


class SupervisionError(Exception):
    """
    Base exception for all supervision collector errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "SYNC_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "SUP_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# LOCAL STORE EXCEPTIONS
# =============================================================================

class StorageError(SupervisionError):
    """Raised when the local store cannot be written"""

    def __init__(
        self,
        message: str,
        namespace: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if namespace:
            details["namespace"] = namespace

        super().__init__(
            message=message,
            code="STORE_001",
            details=details,
            **kwargs,
        )


class StorageCorruptionError(SupervisionError):
    """Raised internally when a stored blob cannot be parsed"""

    def __init__(
        self,
        message: str,
        namespace: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if namespace:
            details["namespace"] = namespace

        super().__init__(
            message=message,
            code="STORE_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# REMOTE GATEWAY EXCEPTIONS
# =============================================================================

class DeliveryError(SupervisionError):
    """Raised when a submission could not be delivered to the remote gateway"""

    def __init__(
        self,
        message: str,
        submission_id: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if submission_id:
            details["submission_id"] = submission_id
        if url:
            details["url"] = url

        super().__init__(
            message=message,
            code="SYNC_001",
            details=details,
            **kwargs,
        )


class GatewayQueryError(SupervisionError):
    """Raised when reading rows back from the remote gateway fails"""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if action:
            details["action"] = action

        super().__init__(
            message=message,
            code="SYNC_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# REPORT EXCEPTIONS
# =============================================================================

class ReportGenerationError(SupervisionError):
    """Raised when the narrative report could not be generated"""

    def __init__(
        self,
        message: str,
        report_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if report_type:
            details["report_type"] = report_type

        super().__init__(
            message=message,
            code="REPORT_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(SupervisionError):
    """Raised when configuration is invalid"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
