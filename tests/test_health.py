"""
tests/test_health.py -- Liveness endpoint and error envelope.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from api.main import __version__


def test_health_returns_ok(web_client: TestClient) -> None:
    resp = web_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": __version__}


def test_unknown_route_uses_error_envelope(web_client: TestClient) -> None:
    resp = web_client.get("/no-such-page")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
