"""
Malaria Supportive Supervision - field data collection app.

Run with:
    streamlit run app.py
"""
from __future__ import annotations
from typing import Any, Dict

import streamlit as st

from supervision_core.ai import ReportGenerator
from supervision_core.config import load_settings
from supervision_core.errors.handlers import ErrorContext, handle_error, safe_execute
from supervision_core.forms import FORM_SECTIONS, FormField, missing_required
from supervision_core.logging import setup_logging, get_logger
from supervision_core.models import build_submission
from supervision_core.offline import OfflineServices, build_services
from supervision_core.services import DashboardService
from supervision_core.ui import streamlit_notifier

logger = get_logger(__name__)

FIELD_PREFIX = "field_"

# ============================================================================
# PAGE CONFIGURATION
# ============================================================================
st.set_page_config(
    page_title="Malaria Supportive Supervision",
    page_icon="🦟",
    layout="wide",
)


@st.cache_resource
def _configure_logging() -> bool:
    setup_logging()
    return True


def get_services() -> OfflineServices:
    """One set of offline services per browser session."""
    if "services" not in st.session_state:
        settings = load_settings()
        st.session_state.services = build_services(settings, notifier=streamlit_notifier)
    return st.session_state.services


# ============================================================================
# FORM STATE HELPERS
# ============================================================================

def _widget_key(field: FormField) -> str:
    return f"{FIELD_PREFIX}{field.name}"


def collect_form_values() -> Dict[str, Any]:
    values = {}
    for section in FORM_SECTIONS:
        for field in section.fields:
            value = st.session_state.get(_widget_key(field))
            if value not in (None, "", []):
                values[field.name] = value
    return values


def populate_form(values: Dict[str, str]) -> None:
    for section in FORM_SECTIONS:
        for field in section.fields:
            raw = values.get(field.name, "")
            if field.type == "multi":
                st.session_state[_widget_key(field)] = [v for v in raw.split(", ") if v]
            else:
                st.session_state[_widget_key(field)] = raw


def reset_form_widgets() -> None:
    for key in [k for k in st.session_state.keys() if str(k).startswith(FIELD_PREFIX)]:
        del st.session_state[key]


def render_field(field: FormField) -> None:
    key = _widget_key(field)
    label = f"{field.label} *" if field.required else field.label
    if field.type in ("select",):
        options = [""] + list(field.options)
        st.selectbox(label, options, key=key)
    elif field.type == "multi":
        st.multiselect(label, list(field.options), key=key)
    elif field.type == "textarea":
        st.text_area(label, key=key)
    else:
        # Dates and numbers are kept as typed text, like the HTML form
        placeholder = "YYYY-MM-DD" if field.type == "date" else None
        st.text_input(label, key=key, placeholder=placeholder)


# ============================================================================
# LOGIN
# ============================================================================

def render_login(services: OfflineServices) -> None:
    st.title("🦟 Malaria Supportive Supervision")
    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        if st.form_submit_button("Log in", type="primary"):
            settings = services.settings
            if username == settings.login_username and password == settings.login_password:
                st.session_state.authenticated = True
                services.app_state.username = username
                st.rerun()
            else:
                st.error("Invalid username or password")


# ============================================================================
# SIDEBAR: CONNECTIVITY, COUNTS, DRAFTS
# ============================================================================

def _on_network_toggle(manager) -> None:
    manager.report_status(st.session_state.network_toggle)


def _on_probe(manager) -> None:
    manager.probe_now()
    st.session_state.network_toggle = manager.is_online


def render_sidebar(services: OfflineServices) -> None:
    manager = services.connection_manager
    engine = services.sync_engine
    drafts = services.draft_manager

    with st.sidebar:
        st.subheader("Connection")
        if "network_toggle" not in st.session_state:
            st.session_state.network_toggle = manager.is_online
        st.toggle("Network available", key="network_toggle", on_change=_on_network_toggle, args=(manager,))
        st.button("Check connection", use_container_width=True, on_click=_on_probe, args=(manager,))
        st.caption("🟢 Online" if manager.is_online else "🔴 Offline")

        col1, col2 = st.columns(2)
        col1.metric("Drafts", drafts.count)
        col2.metric("Pending", engine.pending_count)

        if st.button("🔄 Sync now", use_container_width=True, disabled=not manager.is_online):
            engine.retry_sweep()

        st.subheader("Saved drafts")
        saved = drafts.list_drafts()
        if not saved:
            st.caption("No saved drafts")
        for draft in saved:
            facility = draft.fields.get("facility_name") or "Untitled"
            st.markdown(f"**{facility}**  \n{draft.saved_at[:16].replace('T', ' ')}")
            load_col, delete_col = st.columns(2)
            if load_col.button("Load", key=f"load_{draft.draft_id}"):
                loaded = safe_execute(drafts.load, draft.draft_id, error_message="Could not load draft")
                if loaded is not None:
                    reset_form_widgets()
                    populate_form(loaded.form_fields())
                    st.rerun()
            if delete_col.button("Delete", key=f"delete_{draft.draft_id}"):
                drafts.delete(draft.draft_id)
                st.rerun()

        if st.button("Log out", use_container_width=True):
            st.session_state.authenticated = False
            services.leave_main_view()
            st.rerun()


# ============================================================================
# FORM
# ============================================================================

def render_form(services: OfflineServices) -> None:
    app_state = services.app_state
    total = len(FORM_SECTIONS)
    index = min(max(app_state.current_section, 1), total)
    section = FORM_SECTIONS[index - 1]

    st.progress(index / total, text=f"Section {index} of {total}")
    st.header(section.title)
    st.caption(section.description)
    for field in section.fields:
        render_field(field)

    back_col, draft_col, next_col = st.columns(3)
    if index > 1 and back_col.button("← Back", use_container_width=True):
        app_state.current_section = index - 1
        st.rerun()

    if draft_col.button("💾 Save Draft", use_container_width=True):
        with ErrorContext("Saving draft"):
            services.draft_manager.save(collect_form_values(), current_section=index)

    if index < total:
        if next_col.button("Next →", type="primary", use_container_width=True):
            app_state.current_section = index + 1
            st.rerun()
    elif next_col.button("📤 Submit", type="primary", use_container_width=True):
        submit_form(services)


def submit_form(services: OfflineServices) -> None:
    values = collect_form_values()
    missing = missing_required(values)
    if missing:
        st.warning(f"Please complete: {', '.join(missing)}")
        return

    record = build_submission(
        values,
        submitted_by=services.app_state.username,
        draft_id=services.app_state.current_draft_id,
    )
    try:
        outcome = services.sync_engine.submit(record)
    except Exception as e:
        handle_error(e, user_message="Could not save the submission on this device")
        return

    logger.info(f"Submission {record.submission_id}: {outcome.value}")
    reset_form_widgets()
    st.rerun()


# ============================================================================
# DASHBOARD & REPORTS
# ============================================================================

def render_dashboard(services: OfflineServices) -> None:
    source = st.radio("Data source", ["This device", "Spreadsheet"], horizontal=True)
    service = DashboardService()
    if source == "Spreadsheet":
        if not services.gateway.is_configured:
            st.info("Configure the Google Apps Script URL to view online data")
            return
        result = service.remote_stats(services.gateway)
    else:
        result = service.local_stats(services.sync_engine.archive())

    if not result:
        st.error(f"Could not load dashboard: {result.error}")
        return

    stats = result.data
    cols = st.columns(4)
    cols[0].metric("Supervisions", stats.total_supervisions)
    cols[1].metric("Facilities", stats.unique_facilities)
    cols[2].metric("Districts", stats.unique_districts)
    cols[3].metric("Avg readiness score", stats.avg_readiness_score)

    left, right = st.columns(2)
    left.subheader("Readiness quality")
    left.table(stats.readiness_quality)
    right.subheader("Clinical & data quality")
    right.table(stats.clinical_quality)
    st.subheader("Indicators answered 'Yes'")
    st.table(stats.indicators)
    if stats.region_counts:
        st.subheader("Supervisions by region")
        st.table(stats.region_counts)


def render_reports(services: OfflineServices) -> None:
    archive = services.sync_engine.archive()
    if not archive:
        st.info("No submissions on this device yet")
        return

    labels = ["All submissions (summary)"] + [
        f"{s.get('facility_name') or 'Unknown facility'} - {str(s.get('timestamp', ''))[:10]}"
        for s in archive
    ]
    choice = st.selectbox("Report for", range(len(labels)), format_func=lambda i: labels[i])
    api_key = st.text_input(
        "Anthropic API key", value=services.settings.anthropic_api_key or "", type="password"
    )

    if st.button("Generate AI report", type="primary"):
        generator = ReportGenerator(api_key=api_key or None, model=services.settings.report_model)
        with ErrorContext("Generating AI report"):
            with st.spinner("Generating AI report..."):
                if choice == 0:
                    text = generator.generate_summary(archive)
                else:
                    text = generator.generate_individual(archive[choice - 1])
            st.session_state.report_text = text
            st.toast("Report generated!", icon="✅")

    if st.session_state.get("report_text"):
        st.markdown(st.session_state.report_text)
        st.download_button(
            "Download report", st.session_state.report_text, file_name="supervision_report.md"
        )


# ============================================================================
# MAIN
# ============================================================================

def main() -> None:
    _configure_logging()
    services = get_services()

    if not st.session_state.get("authenticated", False):
        render_login(services)
        return

    render_sidebar(services)

    # Opportunistic sweep on entering the main view, not on every rerun
    services.enter_main_view()

    tab_form, tab_dashboard, tab_reports = st.tabs(["📋 Supervision", "📊 Dashboard", "📝 Reports"])
    with tab_form:
        render_form(services)
    with tab_dashboard:
        render_dashboard(services)
    with tab_reports:
        render_reports(services)


main()
