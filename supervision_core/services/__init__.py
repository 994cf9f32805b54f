# =============================================================================
# supervision_core/services/__init__.py
# Service layer for the Supervision Collector
# =============================================================================

from .base_service import BaseService, ServiceResult
from .dashboard_service import DashboardService, DashboardStats, compute_dashboard_stats

__all__ = [
    "BaseService",
    "ServiceResult",
    "DashboardService",
    "DashboardStats",
    "compute_dashboard_stats",
]
