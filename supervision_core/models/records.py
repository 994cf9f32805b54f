# =============================================================================
# supervision_core/models/records.py
# Submission Record and Draft shapes
# =============================================================================
"""
Record model for the supervision form.

A SubmissionRecord is a finalized form instance; a Draft is an in-progress
one. Both carry the same flat field-name -> string mapping. Promotion from a
draft to a submission copies the fields; the two are never the same object.

Stored/delivered payloads use the camelCase system keys the spreadsheet
backend expects (timestamp, submittedBy, draftId, savedAt, currentSection).
"""

from __future__ import annotations
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

# Multi-select values are flattened with this separator; membership is not
# recoverable afterwards.
MULTI_VALUE_SEPARATOR = ", "

SUBMISSION_SYSTEM_KEYS = ("timestamp", "submittedBy", "submissionId")
DRAFT_SYSTEM_KEYS = ("draftId", "savedAt", "currentSection")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a Z suffix, like the browser's toISOString."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def normalize_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) else value
        return MULTI_VALUE_SEPARATOR.join(normalize_value(v) for v in items)
    return str(value)


def normalize_form_data(
    form_data: Mapping[str, Any],
    exclude: Iterable[str] = (),
) -> Dict[str, str]:
    """Flatten raw form values to the stored field-name -> string mapping."""
    excluded = set(exclude)
    return {
        str(key): normalize_value(value)
        for key, value in form_data.items()
        if key not in excluded
    }


def new_draft_id(now: Optional[datetime] = None) -> str:
    """Mint a draft id of the form draft_<epoch-millis>."""
    if now is None:
        millis = time.time_ns() // 1_000_000
    else:
        millis = int(now.timestamp() * 1000)
    return f"draft_{millis}"


@dataclass
class SubmissionRecord:
    """A completed supervision form."""
    fields: Dict[str, str]
    timestamp: str
    submitted_by: str
    submission_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    draft_id: Optional[str] = None  # Originating draft; not part of the payload

    def to_payload(self) -> Dict[str, str]:
        """Flat mapping as stored locally and POSTed to the gateway."""
        payload = {
            "timestamp": self.timestamp,
            "submittedBy": self.submitted_by,
            "submissionId": self.submission_id,
        }
        payload.update(self.fields)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> SubmissionRecord:
        data = dict(payload)
        return cls(
            fields=normalize_form_data(data, exclude=SUBMISSION_SYSTEM_KEYS),
            timestamp=str(data.get("timestamp", "")),
            submitted_by=str(data.get("submittedBy", "")),
            submission_id=str(data.get("submissionId") or uuid.uuid4().hex),
        )


def build_submission(
    form_data: Mapping[str, Any],
    submitted_by: str,
    now: Optional[datetime] = None,
    draft_id: Optional[str] = None,
) -> SubmissionRecord:
    """Create a SubmissionRecord from raw form values."""
    return SubmissionRecord(
        fields=normalize_form_data(
            form_data, exclude=SUBMISSION_SYSTEM_KEYS + DRAFT_SYSTEM_KEYS
        ),
        timestamp=isoformat(now or utc_now()),
        submitted_by=submitted_by,
        draft_id=draft_id,
    )


@dataclass
class Draft:
    """An in-progress supervision form, stored independently of submissions."""
    draft_id: str
    saved_at: str
    current_section: int = 1
    fields: Dict[str, str] = field(default_factory=dict)

    def form_fields(self) -> Dict[str, str]:
        """Field values to repopulate the form with."""
        return dict(self.fields)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "draftId": self.draft_id,
            "savedAt": self.saved_at,
            "currentSection": self.current_section,
        }
        payload.update(self.fields)
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Draft:
        data = dict(payload)
        try:
            section = int(data.get("currentSection") or 1)
        except (TypeError, ValueError):
            section = 1
        return cls(
            draft_id=str(data["draftId"]),
            saved_at=str(data.get("savedAt", "")),
            current_section=section,
            fields=normalize_form_data(data, exclude=DRAFT_SYSTEM_KEYS),
        )

    def to_submission(self, submitted_by: str, now: Optional[datetime] = None) -> SubmissionRecord:
        """Promote a copy of this draft's fields to a new submission."""
        return build_submission(
            self.fields, submitted_by=submitted_by, now=now, draft_id=self.draft_id
        )
