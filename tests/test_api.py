import pytest
from unittest.mock import patch, AsyncMock
from fastapi.testclient import TestClient
from loguru import logger

import app as app_module
from graph.crm_sync import SyncResult


@pytest.fixture
def client():
    return TestClient(app_module.app)


class TestPrefillEndpoint:
    """POST /api/prefill"""

    def test_missing_address_is_rejected(self, client):
        with patch.object(app_module, "run_enrichment", new=AsyncMock()) as mock_enrich:
            response = client.post("/api/prefill", json={})
            assert response.status_code == 400
            assert response.json() == {"error": "Address is required"}
            mock_enrich.assert_not_awaited()

    def test_invalid_body_is_rejected(self, client):
        response = client.post("/api/prefill", content=b"not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_not_found_without_credentials(self, client):
        response = client.post("/api/prefill", json={"address": "123 Main St"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["fieldsCount"] == 0
        assert body["data"] is None
        assert body["address"] == "123 Main St"

    def test_found(self, client):
        found = {
            "success": True,
            "message": "Found property data and pre-filled 1 fields",
            "fieldsCount": 1,
            "data": {"dba": "Main Street Mart"},
            "address": "123 Main St",
        }
        with patch.object(app_module, "run_enrichment", new=AsyncMock(return_value=found)):
            response = client.post("/api/prefill", json={"address": "123 Main St"})
        assert response.status_code == 200
        assert response.json() == found

    def test_unexpected_error_still_returns_200(self, client):
        with patch.object(app_module, "run_enrichment", new=AsyncMock(side_effect=RuntimeError("graph exploded"))):
            response = client.post("/api/prefill", json={"address": "123 Main St"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["fieldsCount"] == 0
        assert body["error"] == "graph exploded"


class TestCRMEndpoint:
    """POST /api/gohighlevel"""

    def test_success(self, client, sample_draft):
        result = SyncResult(success=True, contact_id="contact-1", status_code=201)
        with patch.object(app_module, "run_sync", new=AsyncMock(return_value=result)) as mock_sync:
            response = client.post("/api/gohighlevel", json=sample_draft)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Lead saved to GoHighLevel CRM",
            "contactId": "contact-1",
        }
        assert mock_sync.await_args.args[0]["contactName"] == "John Doe"

    def test_misconfigured_returns_400(self, client, sample_draft):
        response = client.post("/api/gohighlevel", json=sample_draft)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "GoHighLevel not configured - GHL_API_KEY missing"}

    def test_upstream_status_is_mirrored(self, client, sample_draft):
        result = SyncResult(success=False, error="Invalid JWT", status_code=401, reauthorize=True)
        with patch.object(app_module, "run_sync", new=AsyncMock(return_value=result)):
            response = client.post("/api/gohighlevel", json=sample_draft)

        assert response.status_code == 401
        assert response.json()["reauthorize"] is True

    def test_unexpected_error_returns_500(self, client, sample_draft):
        with patch.object(app_module, "run_sync", new=AsyncMock(side_effect=RuntimeError("boom"))):
            response = client.post("/api/gohighlevel", json=sample_draft)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}


def test_health_reports_configuration(client, crm_env):
    response = client.get("/health")

    assert response.status_code == 200
    services = response.json()["services"]
    assert services["gohighlevel"] == "configured"
    assert services["smarty"] == "missing credentials"
    assert services["pipeline"] == "not configured"
    assert "pit-test-key" not in response.text


def test_health_without_credentials_logs_no_warnings(client):
    messages = []
    sink_id = logger.add(messages.append, level="WARNING")
    try:
        for _ in range(3):
            assert client.get("/health").status_code == 200
    finally:
        logger.remove(sink_id)

    assert messages == []
