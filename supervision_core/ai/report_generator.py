# =============================================================================
# supervision_core/ai/report_generator.py
# Narrative supervision reports via the Anthropic API
# =============================================================================
"""
Report generation is an opaque string-in/string-out call: a prompt goes to
the model, report text comes back. No retry or timeout policy is applied
here; a failure is reported to the caller as ReportGenerationError.
"""

from __future__ import annotations
import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from supervision_core.errors import ReportGenerationError
from supervision_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"
MAX_TOKENS = 4000


class ReportType(Enum):
    INDIVIDUAL = "individual"
    SUMMARY = "summary"


INDIVIDUAL_SECTIONS = (
    "EXECUTIVE SUMMARY",
    "FACILITY INFORMATION",
    "KEY FINDINGS (Health Facility Readiness; Clinical Competency; Data Quality and Use)",
    "GAPS IDENTIFIED",
    "RECOMMENDATIONS",
    "ACTION PLAN SUMMARY",
    "CONCLUSION",
)

SUMMARY_SECTIONS = (
    "EXECUTIVE SUMMARY",
    "COVERAGE STATISTICS",
    "QUALITY ASSESSMENT OVERVIEW",
    "KEY FINDINGS BY INDICATOR (Guidelines, RDTs, ACTs, IV Artesunate, Oxygen/Suction, Data Use)",
    "SYSTEMIC ISSUES IDENTIFIED",
    "PRIORITY RECOMMENDATIONS (top 5)",
    "CONCLUSION",
)


def _section_list(sections: Sequence[str]) -> str:
    return "\n".join(f"## {s}" for s in sections)


def build_individual_prompt(submission: Mapping[str, Any]) -> str:
    return (
        "You are a public health expert specializing in malaria control. "
        "Generate a professional supervision report for the health facility "
        "visit below.\n\n"
        f"SUPERVISION DATA:\n{json.dumps(dict(submission), indent=2)}\n\n"
        "Use these sections, with clear headers and bullet points:\n"
        "# MALARIA SUPPORTIVE SUPERVISION REPORT\n"
        f"{_section_list(INDIVIDUAL_SECTIONS)}"
    )


def build_summary_prompt(submissions: Sequence[Mapping[str, Any]]) -> str:
    data = [dict(s) for s in submissions]
    return (
        "You are a public health expert specializing in malaria control. "
        "Generate an analytical summary report across multiple supervision "
        "visits.\n\n"
        f"SUPERVISION DATA ({len(data)} visits):\n{json.dumps(data, indent=2)}\n\n"
        "Use these sections, with statistics and percentages where relevant:\n"
        "# MALARIA SUPPORTIVE SUPERVISION - SUMMARY REPORT\n"
        f"{_section_list(SUMMARY_SECTIONS)}"
    )


class ReportGenerator:
    """
    Thin wrapper over anthropic.Anthropic().messages.create.

    Usage:
        generator = ReportGenerator(api_key=settings.anthropic_api_key)
        text = generator.generate_summary(engine.archive())
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Any = None,
    ):
        self.api_key = api_key
        self.model = model
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ReportGenerationError("No Anthropic API key configured")
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key)
        return self._client

    def generate(self, prompt: str, report_type: ReportType = ReportType.INDIVIDUAL) -> str:
        client = self._get_client()
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
            text = response.content[0].text
        except ReportGenerationError:
            raise
        except Exception as e:
            logger.error(f"Report generation failed: {e}")
            raise ReportGenerationError(
                f"Failed to generate report: {e}", report_type=report_type.value
            ) from e

        logger.info(f"Generated {report_type.value} report ({len(text)} chars)")
        return text

    def generate_individual(self, submission: Mapping[str, Any]) -> str:
        return self.generate(build_individual_prompt(submission), ReportType.INDIVIDUAL)

    def generate_summary(self, submissions: List[Dict[str, Any]]) -> str:
        if not submissions:
            raise ReportGenerationError("No submissions to summarize", report_type="summary")
        return self.generate(build_summary_prompt(submissions), ReportType.SUMMARY)
