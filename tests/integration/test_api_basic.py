# ============================================================================
# tests/integration/test_api_basic.py
# HTTP/WebSocket surface driven through FastAPI's TestClient
# ============================================================================

import pytest
from fastapi.testclient import TestClient

from helpers import ALWAYS_CRITICAL, make_config
from triage.server.api import create_app


@pytest.fixture
def client():
    # Long interval: ticks are driven explicitly through /v1/engine/tick
    app = create_app(make_config(cap=5, interval=3600.0, **ALWAYS_CRITICAL))
    with TestClient(app) as test_client:
        yield test_client


def _tick(client):
    resp = client.post("/v1/engine/tick")
    assert resp.status_code == 200
    return resp.json()


def test_ping(client):
    resp = client.get("/ping")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_status_before_start(client):
    data = client.get("/v1/status").json()
    assert data["running"] is False
    assert data["stopped"] is False
    assert data["auto_pilot"] is True
    assert data["artifact_count"] == 0
    assert data["artifact_cap"] == 5


def test_tick_ingests_and_flags(client):
    decision = _tick(client)
    assert decision["verdict"] == "flagged"
    assert "FLAGGED" in decision["log_line"]

    artifacts = client.get("/v1/artifacts").json()
    assert [a["id"] for a in artifacts] == [decision["artifact_id"]]
    assert artifacts[0]["severity"] == "Critical"
    assert artifacts[0]["included_in_report"] is True

    single = client.get(f"/v1/artifacts/{decision['artifact_id']}").json()
    assert single["id"] == decision["artifact_id"]

    selection = client.get("/v1/selection").json()
    assert selection["artifact"]["id"] == decision["artifact_id"]


def test_cap_reached_tick_returns_empty_decision(client):
    for _ in range(5):
        _tick(client)
    assert _tick(client) == {"artifact_id": None, "verdict": None, "log_line": None}
    assert len(client.get("/v1/artifacts").json()) == 5


def test_unknown_artifact_is_404(client):
    for resp in (
        client.get("/v1/artifacts/ART-NOPE00"),
        client.post("/v1/artifacts/ART-NOPE00/report-toggle"),
        client.put("/v1/selection", json={"artifact_id": "ART-NOPE00"}),
    ):
        assert resp.status_code == 404
        assert resp.json()["code"] == "ARTIFACT_005"


def test_report_toggle(client):
    artifact_id = _tick(client)["artifact_id"]

    first = client.post(f"/v1/artifacts/{artifact_id}/report-toggle").json()
    second = client.post(f"/v1/artifacts/{artifact_id}/report-toggle").json()

    assert first == {"artifact_id": artifact_id, "included_in_report": False}
    assert second["included_in_report"] is True
    lines = client.get("/v1/audit-log").json()["lines"]
    assert lines[-2:] == [
        f"> [MANUAL] {artifact_id} removed from report.",
        f"> [MANUAL] {artifact_id} added to report.",
    ]


def test_selection_put_and_clear(client):
    first = _tick(client)["artifact_id"]
    _tick(client)

    resp = client.put("/v1/selection", json={"artifact_id": first})
    assert resp.json()["artifact"]["id"] == first

    resp = client.put("/v1/selection", json={"artifact_id": None})
    assert resp.json() == {"artifact": None}


def test_autopilot_switch(client):
    resp = client.put("/v1/autopilot", json={"enabled": False})
    assert resp.json() == {"enabled": False, "changed": True}
    assert client.get("/v1/autopilot").json()["enabled"] is False

    decision = _tick(client)
    assert decision["verdict"] == "pending_review"
    assert client.get("/v1/selection").json() == {"artifact": None}


def test_graph(client):
    for _ in range(3):
        _tick(client)
    graph = client.get("/v1/graph").json()

    assert len(graph["nodes"]) == 3
    assert all(n["val"] == 10 for n in graph["nodes"])
    assert len([link for link in graph["links"] if link["type"] == "temporal"]) == 2


def test_audit_log_since(client):
    log = client.get("/v1/audit-log").json()
    assert log["lines"] == ["> System Initialized...", "> Auto-Pilot Engaged."]

    _tick(client)
    tail = client.get("/v1/audit-log", params={"since": log["last_sequence"]}).json()
    assert len(tail["lines"]) == 1
    assert tail["truncated"] is False


def test_report_json_and_markdown(client):
    _tick(client)
    client.put("/v1/report/summary", json={"text": "Isolate host WS-042."})

    report = client.get("/v1/report").json()
    assert report["status"] == "CRITICAL"
    assert report["case_id"] == "2026-AUTO-99"
    assert report["critical_count"] == 1
    assert report["executive_summary"] == "Isolate host WS-042."

    resp = client.get("/v1/report", params={"format": "markdown"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/markdown")
    assert "CASE ID: #2026-AUTO-99" in resp.text


def test_engine_lifecycle(client):
    assert client.post("/v1/engine/start").json()["running"] is True

    again = client.post("/v1/engine/start")
    assert again.status_code == 409
    assert again.json()["code"] == "ENGINE_002"

    stopped = client.post("/v1/engine/stop").json()
    assert stopped["running"] is False
    assert stopped["stopped"] is True

    rejected = client.post("/v1/engine/tick")
    assert rejected.status_code == 409
    assert rejected.json()["code"] == "ENGINE_001"

    assert client.get("/v1/artifacts").status_code == 200
    assert client.post("/v1/engine/stop").status_code == 200


def test_websocket_stream(client):
    with client.websocket_connect("/v1/ws/stream") as ws:
        first = ws.receive_json()
        assert first["reason"] == "connect"
        assert first["artifacts"] == []

        _tick(client)
        update = ws.receive_json()
        assert update["reason"] == "tick"
        assert len(update["artifacts"]) == 1
        assert update["selection_id"] == update["artifacts"][0]["id"]
        assert len(update["graph"]["nodes"]) == 1


def test_websocket_disconnect_releases_subscription():
    app = create_app(make_config(cap=1, interval=3600.0, **ALWAYS_CRITICAL))
    with TestClient(app) as client:
        _tick(client)
        engine = client.app.state.engine

        with client.websocket_connect("/v1/ws/stream") as ws:
            first = ws.receive_json()
            assert len(first["artifacts"]) == 1
            assert len(engine.snapshot_published) == 1

        assert len(engine.snapshot_published) == 0
