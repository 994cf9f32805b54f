# =============================================================================
# supervision_core/forms/form_config.py
# Field definitions of the malaria supportive supervision form
# =============================================================================
"""
The field set of a submission is defined here. Field names match the column
mapping of the spreadsheet backend. "multi" fields are multi-selects whose
values are joined into one string on submit.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

YES_NO = ("Yes", "No")
QUALITY = ("Excellent", "Acceptable", "Needs Improvement")
MET = ("Met", "Not Met")


@dataclass(frozen=True)
class FormField:
    name: str
    label: str
    type: str = "text"  # text | number | date | textarea | select | multi
    options: Tuple[str, ...] = ()
    required: bool = False


@dataclass(frozen=True)
class FormSection:
    title: str
    description: str
    fields: List[FormField] = field(default_factory=list)


FORM_SECTIONS: List[FormSection] = [
    FormSection(
        "Facility Information",
        "Where and when the supervision took place",
        [
            FormField("supervision_date", "Date of supervision", "date", required=True),
            FormField("region", "Region", required=True),
            FormField("district", "District", required=True),
            FormField("chiefdom", "Chiefdom"),
            FormField("facility_name", "Health facility", required=True),
            FormField("facility_uid", "Facility UID"),
            FormField("hospital_head_name", "Name of facility head"),
            FormField("hospital_head_title", "Title of facility head"),
        ],
    ),
    FormSection(
        "Health Facility Readiness",
        "Availability of guidelines, commodities and equipment",
        [
            FormField("guidelines_available", "Malaria guidelines available", "select", YES_NO),
            FormField("rdts_available", "RDTs available", "select", YES_NO),
            FormField("microscopy_available", "Microscopy available", "select", YES_NO),
            FormField("microscopy_issue_reason", "Reason if microscopy unavailable", "textarea"),
            FormField("stains_issue_reason", "Reason if stains unavailable", "textarea"),
            FormField("acts_available", "ACTs available", "select", YES_NO),
            FormField("iv_artesunate_available", "IV Artesunate available", "select", YES_NO),
            FormField("iptp_llins_available", "IPTp / LLINs available", "select", YES_NO),
            FormField("supportive_drugs_available", "Supportive drugs available", "select", YES_NO),
            FormField("oxygen_suction_available", "Oxygen / suction available", "select", YES_NO),
            FormField("readiness_quality", "Readiness quality rating", "select", QUALITY, required=True),
        ],
    ),
    FormSection(
        "Clinical Competency (Test & Treat)",
        "Adherence to testing and treatment protocols",
        [
            FormField("testing_protocol", "Testing protocol followed", "select", YES_NO),
            FormField("treatment_protocol", "Treatment protocol followed", "select", YES_NO),
            FormField("differential_rx", "Differential diagnosis considered", "select", YES_NO),
            FormField("severe_mgmt", "Severe malaria managed correctly", "select", YES_NO),
            FormField("patient_education", "Patient education given", "select", YES_NO),
        ],
    ),
    FormSection(
        "Data Quality and Use",
        "Completeness, accuracy and use of malaria data",
        [
            FormField("data_completeness", "Registers complete", "select", YES_NO),
            FormField("reporting_accuracy", "Reports match registers", "select", YES_NO),
            FormField("stock_record_match", "Stock records match physical count", "select", YES_NO),
            FormField("data_use", "Data used for decisions", "select", YES_NO),
            FormField("clinical_data_quality", "Clinical & data quality rating", "select", QUALITY, required=True),
        ],
    ),
    FormSection(
        "Death Audit",
        "Review of malaria deaths against care standards",
        [
            FormField("timely_diagnosis_met", "Timely diagnosis", "select", MET),
            FormField("timely_diagnosis_delay", "Diagnosis delay (hours)", "number"),
            FormField("first_dose_met", "First dose within standard", "select", MET),
            FormField("first_dose_delay", "First dose delay (hours)", "number"),
            FormField("supportive_care_met", "Supportive care given", "select", MET),
            FormField("supportive_care_delay", "Supportive care delay (hours)", "number"),
            FormField("monitoring_met", "Monitoring adequate", "select", MET),
            FormField("monitoring_delay", "Monitoring delay (hours)", "number"),
            FormField("death_preventable", "Death preventable", "select", YES_NO),
            FormField("death_audit_quality", "Death audit quality", "select", QUALITY),
            FormField("stockout_occurred", "Stock-out contributed", "select", YES_NO),
            FormField("competency_lacking", "Competency gap contributed", "select", YES_NO),
            FormField(
                "access_barriers", "Access barriers", "multi",
                ("Distance", "Cost", "Transport", "Late referral", "Cultural"),
            ),
            FormField("systemic_quality", "Systemic quality rating", "select", QUALITY),
        ],
    ),
    FormSection(
        "Action Plan & Notes",
        "Agreed follow-up and anything else worth recording",
        [
            FormField("gap_1", "Gap 1", "textarea"),
            FormField("gap_1_action", "Action for gap 1"),
            FormField("gap_1_responsible", "Responsible for gap 1"),
            FormField("gap_1_due", "Due date for gap 1", "date"),
            FormField("additional_notes", "Additional notes", "textarea"),
        ],
    ),
]


def all_fields() -> List[FormField]:
    return [f for section in FORM_SECTIONS for f in section.fields]


def missing_required(values: dict) -> List[str]:
    """Labels of required fields left empty."""
    return [
        f.label for f in all_fields()
        if f.required and not str(values.get(f.name) or "").strip()
    ]
