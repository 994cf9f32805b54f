# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set
from unittest.mock import MagicMock

from supervision_core.config import Settings
from supervision_core.errors import DeliveryError
from supervision_core.offline.local_store import LocalStore
from supervision_core.state import AppState


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_form_data() -> Dict[str, Any]:
    """Raw values as the form widgets hand them over"""
    return {
        "supervision_date": "2025-03-14",
        "region": "Northern",
        "district": "Bombali",
        "chiefdom": "Bombali Sebora",
        "facility_name": "Makeni Government Hospital",
        "guidelines_available": "Yes",
        "rdts_available": "Yes",
        "acts_available": "No",
        "readiness_quality": "Acceptable",
        "clinical_data_quality": "Excellent",
        "access_barriers": ["Distance", "Cost"],
    }


@pytest.fixture
def sample_submissions() -> List[Dict[str, str]]:
    """A small archive spanning two regions"""
    return [
        {
            "timestamp": "2025-03-01T09:00:00.000Z", "submittedBy": "admin",
            "region": "Northern", "district": "Bombali", "facility_name": "Makeni GH",
            "readiness_quality": "Excellent", "clinical_data_quality": "Acceptable",
            "guidelines_available": "Yes", "rdts_available": "Yes", "acts_available": "Yes",
            "iv_artesunate_available": "No", "oxygen_suction_available": "No", "data_use": "Yes",
        },
        {
            "timestamp": "2025-03-02T09:00:00.000Z", "submittedBy": "admin",
            "region": "Northern", "district": "Tonkolili", "facility_name": "Magburaka GH",
            "readiness_quality": "Acceptable", "clinical_data_quality": "Needs Improvement",
            "guidelines_available": "No", "rdts_available": "Yes", "acts_available": "Yes",
            "iv_artesunate_available": "Yes", "oxygen_suction_available": "No", "data_use": "No",
        },
        {
            "timestamp": "2025-03-03T09:00:00.000Z", "submittedBy": "admin",
            "region": "Southern", "district": "Bo", "facility_name": "Bo GH",
            "readiness_quality": "Needs Improvement", "clinical_data_quality": "",
            "guidelines_available": "Yes", "rdts_available": "No", "acts_available": "",
            "iv_artesunate_available": "Yes", "oxygen_suction_available": "Yes", "data_use": "Yes",
        },
    ]


# =============================================================================
# CORE FIXTURES
# =============================================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database and a configured gateway"""
    return Settings(
        script_url="https://script.google.com/macros/s/test/exec",
        db_path=tmp_path / "supervision.db",
        request_timeout=2.0,
    )


@pytest.fixture
def store(settings):
    local_store = LocalStore(settings.db_path)
    local_store.initialize()
    yield local_store
    local_store.close()


@pytest.fixture
def app_state() -> AppState:
    return AppState(is_online=True, username="supervisor1")


class RecordingNotifier:
    """Collects notices instead of rendering them"""

    def __init__(self):
        self.notices = []

    def __call__(self, message, level):
        self.notices.append((message, level))

    @property
    def messages(self) -> List[str]:
        return [message for message, _ in self.notices]


@pytest.fixture
def notices() -> RecordingNotifier:
    return RecordingNotifier()


class FakeGateway:
    """
    In-memory stand-in for SheetsGateway.

    fail_ids: submissionIds whose delivery raises DeliveryError
    fail_all: every delivery raises
    on_deliver: hook called before each delivery (to simulate races)
    """

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.delivered: List[Dict[str, Any]] = []
        self.fail_ids: Set[str] = set()
        self.fail_all = False
        self.on_deliver = None

    @property
    def is_configured(self) -> bool:
        return self.configured

    def deliver(self, payload):
        if self.on_deliver is not None:
            self.on_deliver(payload)
        if self.fail_all or payload.get("submissionId") in self.fail_ids:
            raise DeliveryError("network unreachable", submission_id=payload.get("submissionId"))
        self.delivered.append(dict(payload))


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


class FakeClock:
    """Deterministic clock advancing one second per call"""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2025, 3, 14, 8, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def draft_manager(store, app_state, notices, clock):
    from supervision_core.offline.draft_manager import DraftManager
    return DraftManager(store, app_state, notices, clock=clock)


@pytest.fixture
def sync_engine(store, gateway, app_state, draft_manager, notices, settings):
    from supervision_core.offline.sync_engine import SyncEngine
    return SyncEngine(store, gateway, app_state, draft_manager, notices, settings)


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit():
    """Mock Streamlit for testing"""
    import sys

    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.cache_data = lambda f: f
    mock_st.cache_resource = lambda f: f

    original_st = sys.modules.get('streamlit')
    sys.modules['streamlit'] = mock_st

    yield mock_st

    if original_st:
        sys.modules['streamlit'] = original_st
    else:
        del sys.modules['streamlit']


@pytest.fixture
def mock_session():
    """Mock requests.Session"""
    session = MagicMock()
    session.headers = {}
    return session
