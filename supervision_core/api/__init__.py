"""
Remote API clients for the Supervision Collector
"""
from supervision_core.api.gateway import (
    DeliveryMode,
    GatewayConfig,
    SheetsGateway,
    normalize_header,
)

__all__ = ["DeliveryMode", "GatewayConfig", "SheetsGateway", "normalize_header"]
