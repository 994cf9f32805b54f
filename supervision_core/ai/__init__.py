"""
AI report generation for the Supervision Collector
"""

from .report_generator import (
    ReportGenerator,
    ReportType,
    build_individual_prompt,
    build_summary_prompt,
)

__all__ = [
    "ReportGenerator",
    "ReportType",
    "build_individual_prompt",
    "build_summary_prompt",
]
