"""Smoke tests for blueprint wiring."""

from __future__ import annotations


def test_health_endpoint(client) -> None:
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "db": "ok", "version": "dev"}


def test_unknown_route_is_problem(client) -> None:
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    body = resp.get_json()
    assert body["code"] == "not_found"
    assert body["detail"] == "Route '/api/nope' not found"
