"""Tests for the HTTP API."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from tracescan.api.dependencies import get_scan_service
from tracescan.api.main import app


@pytest.fixture
def client(scan_service):
    app.dependency_overrides[get_scan_service] = lambda: scan_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/").json()["name"] == "TraceScan"
    assert client.get("/health").json()["status"] == "healthy"


def test_list_volumes(client):
    response = client.get("/api/volumes")
    assert response.status_code == 200
    body = response.json()
    assert body["error"] is None
    assert body["volumes"][0]["total_gb"] == "100.00"


def test_hidden_scan(client, home):
    response = client.post("/api/scan/hidden", json={"path": str(home)})
    assert response.status_code == 200
    body = response.json()
    assert body["artifacts"][0]["path"].endswith(".big")
    assert body["total_discovered"] == 5


def test_hidden_scan_bad_root_is_not_an_http_error(client, tmp_path):
    response = client.post("/api/scan/hidden", json={"path": str(tmp_path / "nope")})
    assert response.status_code == 200
    assert response.json()["error"]


def test_preview_requires_path(client):
    assert client.post("/api/scan/preview", json={}).status_code == 422


def test_preview(client, home):
    body = client.post("/api/scan/preview", json={"path": str(home / ".bashrc")}).json()
    assert body["bytes_read"] == 100
    assert body["is_binary"] is False


def test_browsers_and_event_logs(client):
    assert client.get("/api/scan/browsers").json()["total_found"] == 0
    events = client.get("/api/scan/event-logs").json()
    assert events["success"] is False


def test_risk(client):
    body = client.get("/api/risk").json()
    assert body["score"] == 80
    assert body["risk"] == "HIGH"


def test_generate_and_verify_report(client):
    generated = client.post("/api/reports", json={"scan_data": {"risk": {"score": 80, "risk": "HIGH"}}}).json()
    assert generated["success"] is True

    verdict = client.post("/api/reports/verify", json={"path": generated["data_path"]}).json()
    assert verdict["valid"] is True


def test_wipe_simulation_stream(client):
    response = client.get("/api/wipe/simulate", params={"target": "D:"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = [
        json.loads(line[len("data: "):])
        for line in response.text.splitlines()
        if line.startswith("data: ")
    ]
    assert [e["step"] for e in events] == list(range(1, 11))
    assert events[-1]["completed"] is True
    assert "(D:)" in events[0]["message"]
