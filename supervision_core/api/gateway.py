"""
Remote Gateway for the Google Apps Script web app
Delivers submissions (POST) and reads rows back through the query interface (GET)
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

import requests

from supervision_core.config import PLACEHOLDER_SCRIPT_URLS, Settings
from supervision_core.errors import DeliveryError, GatewayQueryError
from supervision_core.logging import get_logger

logger = get_logger(__name__)


class DeliveryMode(Enum):
    """
    What counts as a successful delivery.

    FIRE_AND_FORGET: the request completed without a transport error. The
    response status and body are not inspected, so "stored" and "received and
    dropped" are indistinguishable.
    ACKNOWLEDGED: additionally requires a 2xx status and {"success": true}.
    """
    FIRE_AND_FORGET = "fire_and_forget"
    ACKNOWLEDGED = "acknowledged"


@dataclass
class GatewayConfig:
    """Configuration for the gateway connection"""
    script_url: str
    timeout: float = 30.0
    delivery_mode: DeliveryMode = DeliveryMode.FIRE_AND_FORGET
    headers: Dict[str, str] = field(
        default_factory=lambda: {"Content-Type": "application/json"}
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> GatewayConfig:
        return cls(
            script_url=settings.script_url,
            timeout=settings.request_timeout,
            delivery_mode=DeliveryMode(settings.delivery_mode),
        )


def normalize_header(header: Any) -> str:
    """Spreadsheet header -> row key: lower-cased, whitespace runs -> '_'."""
    return re.sub(r"\s+", "_", str(header).lower())


class SheetsGateway:
    """
    HTTP client for the spreadsheet backend.

    Usage:
        gateway = SheetsGateway(GatewayConfig.from_settings(settings))
        if gateway.is_configured:
            gateway.deliver(record.to_payload())
    """

    def __init__(self, config: GatewayConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        if config.headers:
            self.session.headers.update(config.headers)

    @property
    def is_configured(self) -> bool:
        url = self.config.script_url
        return bool(url) and url not in PLACEHOLDER_SCRIPT_URLS

    def deliver(self, payload: Mapping[str, Any]) -> None:
        """
        POST one submission.

        Raises:
            DeliveryError: on any transport failure, timeout, or (in
                ACKNOWLEDGED mode) a missing acknowledgement
        """
        submission_id = payload.get("submissionId")
        try:
            response = self.session.post(
                self.config.script_url,
                json=dict(payload),
                timeout=self.config.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise DeliveryError(
                f"Delivery timed out after {self.config.timeout}s",
                submission_id=submission_id,
                url=self.config.script_url,
            ) from e
        except requests.exceptions.RequestException as e:
            raise DeliveryError(
                f"Delivery failed: {e}",
                submission_id=submission_id,
                url=self.config.script_url,
            ) from e

        if self.config.delivery_mode is DeliveryMode.ACKNOWLEDGED:
            self._check_acknowledgement(response, submission_id)

        logger.debug(f"Delivered submission {submission_id}")

    def _check_acknowledgement(self, response: requests.Response, submission_id: Optional[str]) -> None:
        try:
            response.raise_for_status()
            body = response.json()
        except (requests.exceptions.HTTPError, ValueError) as e:
            raise DeliveryError(
                f"Delivery not acknowledged: {e}",
                submission_id=submission_id,
                url=self.config.script_url,
            ) from e

        if not isinstance(body, dict) or body.get("success") is not True:
            error = body.get("error") if isinstance(body, dict) else body
            raise DeliveryError(
                f"Gateway rejected submission: {error}",
                submission_id=submission_id,
                url=self.config.script_url,
            )

    def fetch_rows(self, action: str = "getData") -> List[Dict[str, Any]]:
        """
        Read stored rows through the query interface.

        Returns:
            Row mappings with normalized keys
        """
        if not self.is_configured:
            raise GatewayQueryError("Remote gateway is not configured", action=action)

        try:
            response = self.session.get(
                self.config.script_url,
                params={"action": action},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise GatewayQueryError(f"Query failed: {e}", action=action) from e

        rows = body.get("data") if isinstance(body, dict) else None
        if not isinstance(rows, list):
            raise GatewayQueryError("Response has no data list", action=action)

        return [
            {normalize_header(key): value for key, value in row.items()}
            for row in rows
            if isinstance(row, dict)
        ]
