from supervision_core.models.records import (
    Draft,
    SubmissionRecord,
    build_submission,
    isoformat,
    new_draft_id,
    normalize_form_data,
    utc_now,
)

__all__ = [
    "Draft",
    "SubmissionRecord",
    "build_submission",
    "isoformat",
    "new_draft_id",
    "normalize_form_data",
    "utc_now",
]
