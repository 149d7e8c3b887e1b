"""Tests for the health endpoint."""

import pytest
from fastapi.testclient import TestClient

from referral_service import __version__
from referral_service.main import app


@pytest.mark.unit
class TestHealth:
    """Health check endpoint tests."""

    def test_health_returns_configuration(self):
        """Health reports service identity and configured backends."""
        client = TestClient(app)

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert body["case_storage"] in ("inmemory", "database")
        assert body["object_storage"] in ("inmemory", "s3")
        assert "://" not in body["database"]
