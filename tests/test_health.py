"""
tests/test_health.py -- Integration tests for GET /api/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against a live store
  - No authentication required, even with the API guard on
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from api.main import VERSION


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _ = api_client
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == VERSION
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _ = api_client
    app = client.app
    app.state.require_api_auth = True
    try:
        resp = client.get("/api/health", headers={})
    finally:
        app.state.require_api_auth = False
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_health_reports_database_error(api_client, monkeypatch):
    """A failing ping degrades the database component instead of raising."""
    client, _ = api_client
    store = client.app.state.machine_store

    def _boom():
        raise OperationalError("SELECT 1", {}, Exception("db down"))

    monkeypatch.setattr(store, "ping", _boom)
    data = client.get("/api/health").json()
    assert data["components"]["database"] == "error"
