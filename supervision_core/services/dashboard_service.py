"""
Dashboard Service - summary statistics over supervision submissions.

Works on the local submissions archive (or rows read back from the
spreadsheet) and produces the figures shown on the dashboard.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

from supervision_core.api.gateway import SheetsGateway
from supervision_core.services.base_service import BaseService, ServiceResult

QUALITY_LEVELS = ("Excellent", "Acceptable", "Needs Improvement")
QUALITY_SCORES = {"Excellent": 100, "Acceptable": 75, "Needs Improvement": 50}

# Indicator name -> form field counted when answered "Yes"
INDICATOR_FIELDS = {
    "guidelines_available": "guidelines_available",
    "rdts_available": "rdts_available",
    "acts_available": "acts_available",
    "iv_artesunate_available": "iv_artesunate_available",
    "oxygen_available": "oxygen_suction_available",
    "data_use": "data_use",
}


@dataclass
class DashboardStats:
    """Container for dashboard figures."""
    total_supervisions: int = 0
    unique_facilities: int = 0
    unique_districts: int = 0
    avg_readiness_score: int = 0
    readiness_quality: Dict[str, int] = field(
        default_factory=lambda: {level: 0 for level in QUALITY_LEVELS}
    )
    clinical_quality: Dict[str, int] = field(
        default_factory=lambda: {level: 0 for level in QUALITY_LEVELS}
    )
    region_counts: Dict[str, int] = field(default_factory=dict)
    indicators: Dict[str, int] = field(
        default_factory=lambda: {name: 0 for name in INDICATOR_FIELDS}
    )


def _quality_counts(df: pd.DataFrame, column: str) -> Dict[str, int]:
    counts = {level: 0 for level in QUALITY_LEVELS}
    if column not in df.columns:
        return counts
    observed = df[column].value_counts()
    for level in QUALITY_LEVELS:
        counts[level] = int(observed.get(level, 0))
    return counts


def _unique_non_empty(df: pd.DataFrame, column: str) -> int:
    if column not in df.columns:
        return 0
    values = df[column].fillna("").astype(str)
    return int(values[values != ""].nunique())


def compute_dashboard_stats(submissions: Sequence[Mapping[str, Any]]) -> DashboardStats:
    """Aggregate submissions into dashboard figures."""
    stats = DashboardStats()
    if not submissions:
        return stats

    df = pd.DataFrame(list(submissions))
    stats.total_supervisions = len(df)
    stats.unique_facilities = _unique_non_empty(df, "facility_name")
    stats.unique_districts = _unique_non_empty(df, "district")
    stats.readiness_quality = _quality_counts(df, "readiness_quality")
    stats.clinical_quality = _quality_counts(df, "clinical_data_quality")

    if "region" in df.columns:
        regions = df["region"].fillna("").astype(str)
        stats.region_counts = {
            str(region): int(count)
            for region, count in regions[regions != ""].value_counts().items()
        }

    for name, column in INDICATOR_FIELDS.items():
        if column in df.columns:
            stats.indicators[name] = int((df[column] == "Yes").sum())

    rated = sum(stats.readiness_quality.values())
    if rated:
        total = sum(QUALITY_SCORES[level] * n for level, n in stats.readiness_quality.items())
        # Half-up like Math.round
        stats.avg_readiness_score = int(total / rated + 0.5)

    return stats


class DashboardService(BaseService):
    """Service wrapper used by the UI."""

    def local_stats(self, submissions: List[Dict[str, Any]]) -> ServiceResult:
        return self.safe_execute(
            "Computing dashboard statistics", compute_dashboard_stats, submissions
        )

    def remote_stats(self, gateway: SheetsGateway) -> ServiceResult:
        """Statistics over the rows stored in the spreadsheet."""
        rows = self.safe_execute("Fetching spreadsheet rows", gateway.fetch_rows)
        if not rows:
            return rows
        return self.local_stats(rows.data)
