# =============================================================================
# tests/unit/test_gateway.py
# Unit Tests for SheetsGateway
# =============================================================================

import pytest
import requests
from unittest.mock import MagicMock

from supervision_core.api.gateway import (
    DeliveryMode,
    GatewayConfig,
    SheetsGateway,
    normalize_header,
)
from supervision_core.config import Settings
from supervision_core.errors import DeliveryError, GatewayQueryError

URL = "https://script.google.com/macros/s/test/exec"


def make_gateway(session, mode=DeliveryMode.FIRE_AND_FORGET, url=URL):
    return SheetsGateway(GatewayConfig(script_url=url, timeout=5, delivery_mode=mode), session=session)


def make_response(status=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status}")
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


class TestConfiguration:
    """Gateway configuration"""

    @pytest.mark.parametrize("url", ["", "YOUR_GOOGLE_APPS_SCRIPT_WEB_APP_URL", "YOUR_GOOGLE_SCRIPT_URL_HERE"])
    def test_placeholders_are_unconfigured(self, mock_session, url):
        """Placeholder URLs count as unconfigured"""
        assert not make_gateway(mock_session, url=url).is_configured

    def test_real_url_is_configured(self, mock_session):
        """A real URL counts as configured"""
        assert make_gateway(mock_session).is_configured

    def test_config_from_settings(self, tmp_path):
        """Gateway config follows Settings"""
        settings = Settings(script_url=URL, request_timeout=7, delivery_mode="acknowledged",
                            db_path=tmp_path / "x.db")
        config = GatewayConfig.from_settings(settings)

        assert config.timeout == 7.0
        assert config.delivery_mode is DeliveryMode.ACKNOWLEDGED


class TestFireAndForget:
    """Transport-level success only"""

    def test_posts_json_with_timeout(self, mock_session):
        """Payload is POSTed as JSON with the timeout"""
        gateway = make_gateway(mock_session)
        gateway.deliver({"submissionId": "abc", "region": "Northern"})

        mock_session.post.assert_called_once_with(
            URL, json={"submissionId": "abc", "region": "Northern"}, timeout=5
        )

    def test_error_status_still_counts_as_delivered(self, mock_session):
        """Status and body are ignored in fire-and-forget mode"""
        mock_session.post.return_value = make_response(status=500, json_error=True)
        make_gateway(mock_session).deliver({"submissionId": "abc"})

    def test_connection_error_raises_delivery_error(self, mock_session):
        """Connection errors raise DeliveryError"""
        mock_session.post.side_effect = requests.exceptions.ConnectionError("unreachable")

        with pytest.raises(DeliveryError) as excinfo:
            make_gateway(mock_session).deliver({"submissionId": "abc"})
        assert excinfo.value.details["submission_id"] == "abc"

    def test_timeout_raises_delivery_error(self, mock_session):
        """Timeouts raise DeliveryError"""
        mock_session.post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(DeliveryError, match="timed out"):
            make_gateway(mock_session).deliver({"submissionId": "abc"})


class TestAcknowledged:
    """Application-level acknowledgement"""

    def test_success_body_is_accepted(self, mock_session):
        """success true is accepted"""
        mock_session.post.return_value = make_response(body={"success": True})
        make_gateway(mock_session, DeliveryMode.ACKNOWLEDGED).deliver({"submissionId": "abc"})

    def test_rejection_raises(self, mock_session):
        """success false is a failure"""
        mock_session.post.return_value = make_response(body={"success": False, "error": "bad sheet"})

        with pytest.raises(DeliveryError, match="bad sheet"):
            make_gateway(mock_session, DeliveryMode.ACKNOWLEDGED).deliver({"submissionId": "abc"})

    def test_http_error_raises(self, mock_session):
        """Error status is a failure"""
        mock_session.post.return_value = make_response(status=502)

        with pytest.raises(DeliveryError):
            make_gateway(mock_session, DeliveryMode.ACKNOWLEDGED).deliver({"submissionId": "abc"})

    def test_opaque_body_raises(self, mock_session):
        """Non-JSON body is a failure"""
        mock_session.post.return_value = make_response(json_error=True)

        with pytest.raises(DeliveryError):
            make_gateway(mock_session, DeliveryMode.ACKNOWLEDGED).deliver({"submissionId": "abc"})


class TestFetchRows:
    """Query interface"""

    def test_rows_are_normalized(self, mock_session):
        """Row keys are normalized"""
        mock_session.get.return_value = make_response(
            body={"data": [{"Facility Name": "Makeni GH", "Readiness  Quality": "Excellent"}]}
        )

        rows = make_gateway(mock_session).fetch_rows()

        assert rows == [{"facility_name": "Makeni GH", "readiness_quality": "Excellent"}]
        mock_session.get.assert_called_once_with(URL, params={"action": "getData"}, timeout=5)

    def test_missing_data_raises(self, mock_session):
        """Response without data is an error"""
        mock_session.get.return_value = make_response(body={"status": "running"})

        with pytest.raises(GatewayQueryError):
            make_gateway(mock_session).fetch_rows()

    def test_network_error_raises(self, mock_session):
        """Network errors raise GatewayQueryError"""
        mock_session.get.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(GatewayQueryError):
            make_gateway(mock_session).fetch_rows()

    def test_unconfigured_raises(self, mock_session):
        """Unconfigured gateway never sends a request"""
        with pytest.raises(GatewayQueryError):
            make_gateway(mock_session, url="").fetch_rows()
        mock_session.get.assert_not_called()

    def test_normalize_header(self):
        """Headers are lower-cased with underscores"""
        assert normalize_header("Submitted By") == "submitted_by"
        assert normalize_header("GPS\tLatitude") == "gps_latitude"
