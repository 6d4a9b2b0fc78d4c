# pylint: disable=missing-module-docstring,missing-function-docstring,redefined-outer-name

import random
import re
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from config import AppConfig
from conversation.engine import KeywordEngine
from server.app import create_app


@pytest.fixture
def client() -> Iterator[TestClient]:
    config = AppConfig(public_ws_base_url="ws://voice.test", enable_json_logs=False)
    app = create_app(config, engine=KeywordEngine(rng=random.Random(11)))
    with TestClient(app) as c:
        yield c


def create(client: TestClient) -> str:
    response = client.post("/api/voice/session")
    assert response.status_code == 200
    return response.json()["sessionId"]


# ---------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------

def test_health_counts_sessions(client: TestClient):
    assert client.get("/health").json()["activeSessions"] == 0

    create(client)
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["activeSessions"] == 1
    assert body["timestamp"]


def test_create_session_response(client: TestClient):
    body = client.post("/api/voice/session").json()

    sid = body["sessionId"]
    assert body["status"] == "created"
    assert body["token"] == f"token_{sid}"
    assert body["wsUrl"] == f"ws://voice.test/ws/voice/{sid}"


def test_get_fresh_session(client: TestClient):
    sid = create(client)

    body = client.get(f"/api/voice/session/{sid}").json()

    assert body["sessionId"] == sid
    assert body["state"] == "greeting"
    assert body["context"] == {"product": None, "issue": None, "urgency": None, "ticketId": None}
    assert body["metrics"] == []
    assert body["createdAt"]
    assert body["connectedAt"] is None
    assert body["isConnected"] is False


def test_get_is_idempotent(client: TestClient):
    sid = create(client)

    first = client.get(f"/api/voice/session/{sid}").json()
    second = client.get(f"/api/voice/session/{sid}").json()

    assert first == second


def test_get_unknown_is_404(client: TestClient):
    response = client.get("/api/voice/session/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Session not found"}


def test_delete_session(client: TestClient):
    sid = create(client)

    response = client.delete(f"/api/voice/session/{sid}")

    assert response.status_code == 200
    assert response.json() == {"status": "ended", "sessionId": sid}
    assert client.get(f"/api/voice/session/{sid}").status_code == 404
    assert client.post("/api/voice/metrics", json={"sessionId": sid}).status_code == 404
    assert client.delete(f"/api/voice/session/{sid}").status_code == 404


def test_log_metrics(client: TestClient):
    sid = create(client)

    response = client.post("/api/voice/metrics", json={
        "sessionId": sid,
        "speechEndTime": 1000,
        "responseStartTime": 1450,
        "latencyMs": 450,
        "processingSteps": ["stt", "engine", "tts"],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "logged"
    assert body["metrics"]["latencyMs"] == 450
    assert body["metrics"]["timestamp"]

    stored = client.get(f"/api/voice/session/{sid}").json()["metrics"]
    assert stored == [body["metrics"]]


def test_log_metrics_without_session_id_is_404(client: TestClient):
    response = client.post("/api/voice/metrics", json={"latencyMs": 1})

    assert response.status_code == 404


@pytest.mark.parametrize("bad_id", [["x"], {"id": "x"}, 42])
def test_log_metrics_with_non_string_session_id_is_404(client: TestClient, bad_id: object):
    create(client)

    response = client.post("/api/voice/metrics", json={"sessionId": bad_id, "latencyMs": 1})

    assert response.status_code == 404
    assert response.json() == {"error": "Session not found"}


# ---------------------------------------------------------------------
# Channel
# ---------------------------------------------------------------------

def test_channel_rejects_unknown_session(client: TestClient):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/voice/does-not-exist") as ws:
            ws.receive_text()

    assert exc_info.value.code == 1008


def test_channel_conversation_end_to_end(client: TestClient):
    sid = create(client)

    with client.websocket_connect(f"/ws/voice/{sid}") as ws:
        assert client.get(f"/api/voice/session/{sid}").json()["isConnected"] is True

        ws.send_json({"type": "text", "data": {"text": "my mobile app keeps crashing"}})
        msg = ws.receive_json()
        assert msg["type"] == "response"
        assert msg["data"]["state"] == "collecting_issue"

        # ignored without closing the channel
        ws.send_json({"type": "bogus", "data": {}})
        ws.send_text("not json")

        ws.send_json({"type": "metrics", "data": {"latencyMs": 200}})

        ws.send_json({"type": "text", "data": {"text": "it crashes on upload"}})
        msg = ws.receive_json()
        assert msg["data"]["state"] == "collecting_urgency"

        ws.send_json({"type": "text", "data": {"text": "very urgent"}})
        msg = ws.receive_json()
        assert msg["data"]["state"] == "confirming"
        ticket_id = re.search(r"T-\d+", msg["data"]["text"])
        assert ticket_id is not None

        ws.send_json({"type": "text", "data": {"text": "yes submit it"}})
        msg = ws.receive_json()
        assert msg["data"]["state"] == "complete"
        assert "submitted" in msg["data"]["text"]

        snapshot = client.get(f"/api/voice/session/{sid}").json()
        assert snapshot["context"] == {
            "product": "mobile app",
            "issue": "it crashes on upload",
            "urgency": "high",
            "ticketId": ticket_id.group(0),
        }
        assert snapshot["metrics"][0]["latencyMs"] == 200
        assert snapshot["connectedAt"] is not None

    # closing the channel detaches, the session stays
    after = client.get(f"/api/voice/session/{sid}")
    assert after.status_code == 200
    assert after.json()["isConnected"] is False
    assert after.json()["state"] == "complete"
