"""
Application Configuration
Loads collector settings from Streamlit secrets, environment variables, or defaults
"""
from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from supervision_core.errors import ConfigurationError
from supervision_core.logging import get_logger

logger = get_logger(__name__)

# Placeholder values shipped in the default configuration. A gateway URL equal
# to one of these counts as "not configured".
PLACEHOLDER_SCRIPT_URLS = (
    "YOUR_GOOGLE_APPS_SCRIPT_WEB_APP_URL",
    "YOUR_GOOGLE_SCRIPT_URL_HERE",
)
PLACEHOLDER_SHEET_URLS = (
    "YOUR_GOOGLE_SHEET_URL",
    "YOUR_GOOGLE_SHEET_URL_HERE",
)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "local_data" / "supervision.db"

DELIVERY_MODES = ("fire_and_forget", "acknowledged")


@dataclass
class Settings:
    """Runtime settings for the collector"""
    script_url: str = PLACEHOLDER_SCRIPT_URLS[0]
    google_sheet_url: str = PLACEHOLDER_SHEET_URLS[0]
    sheet_name: str = "Submissions"
    anthropic_api_key: Optional[str] = None
    report_model: str = "claude-sonnet-4-20250514"
    db_path: Path = DEFAULT_DB_PATH
    request_timeout: float = 30.0
    delivery_mode: str = "fire_and_forget"
    archive_max_records: Optional[int] = None  # None keeps every record
    login_username: str = "admin"
    login_password: str = "admin"
    cas_max_attempts: int = 5

    def __post_init__(self):
        self.db_path = Path(self.db_path)
        self.request_timeout = _coerce(self.request_timeout, float, "request_timeout")
        self.cas_max_attempts = _coerce(self.cas_max_attempts, int, "cas_max_attempts")
        if self.archive_max_records in ("", None):
            self.archive_max_records = None
        else:
            self.archive_max_records = _coerce(
                self.archive_max_records, int, "archive_max_records"
            )
            if self.archive_max_records < 1:
                raise ConfigurationError(
                    "archive_max_records must be positive",
                    config_key="archive_max_records",
                    expected_type="int >= 1",
                )

        if self.delivery_mode not in DELIVERY_MODES:
            raise ConfigurationError(
                f"Unknown delivery mode: {self.delivery_mode}",
                config_key="delivery_mode",
                expected_type=" | ".join(DELIVERY_MODES),
            )
        if self.request_timeout <= 0:
            raise ConfigurationError(
                "request_timeout must be positive",
                config_key="request_timeout",
                expected_type="float > 0",
            )
        if self.cas_max_attempts < 1:
            raise ConfigurationError(
                "cas_max_attempts must be at least 1",
                config_key="cas_max_attempts",
                expected_type="int >= 1",
            )

    @property
    def gateway_configured(self) -> bool:
        return bool(self.script_url) and self.script_url not in PLACEHOLDER_SCRIPT_URLS

    @property
    def sheet_configured(self) -> bool:
        return bool(self.google_sheet_url) and self.google_sheet_url not in PLACEHOLDER_SHEET_URLS


def _coerce(value: Any, kind: type, key: str):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid value for {key}: {value!r}",
            config_key=key,
            expected_type=kind.__name__,
        )


def _load_from_secrets() -> Dict[str, Any]:
    """
    Read the [supervision] table from Streamlit secrets.

    Expected secrets.toml format:
    [supervision]
    script_url = "https://script.google.com/macros/s/.../exec"
    google_sheet_url = "https://docs.google.com/spreadsheets/d/.../edit"
    anthropic_api_key = "sk-ant-..."
    delivery_mode = "fire_and_forget"
    """
    try:
        import streamlit as st

        if "supervision" in st.secrets:
            return dict(st.secrets["supervision"])
    except Exception as e:
        # No secrets file outside a Streamlit run
        logger.debug(f"Streamlit secrets unavailable: {e}")
    return {}


def _load_from_env() -> Dict[str, Any]:
    values = {}
    for f in fields(Settings):
        env_value = os.getenv(f"SUPERVISION_{f.name.upper()}")
        if env_value is not None:
            values[f.name] = env_value
    if "anthropic_api_key" not in values and os.getenv("ANTHROPIC_API_KEY"):
        values["anthropic_api_key"] = os.getenv("ANTHROPIC_API_KEY")
    return values


def load_settings(overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Build Settings from (lowest to highest precedence) defaults, environment
    variables, Streamlit secrets and explicit overrides.
    """
    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}
    values.update(_load_from_env())
    values.update(_load_from_secrets())
    values.update(overrides or {})

    unknown = sorted(set(values) - known)
    if unknown:
        logger.warning(f"Ignoring unknown settings: {', '.join(unknown)}")

    settings = Settings(**{k: v for k, v in values.items() if k in known})
    if not settings.gateway_configured:
        logger.info("Remote gateway not configured; submissions stay local")
    return settings
