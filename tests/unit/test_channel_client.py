# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json
from typing import Any

import httpx
import pytest
from websockets.exceptions import ConnectionClosed
from websockets.frames import Close

import client.adapter as adapter_mod
import client.channel as channel_mod
from client.adapter import SpeechIOAdapter
from client.channel import ChannelClient
from client.voice_state import VoiceState
from errors import InvalidSession, UpstreamFailure


class RawFrame(str):
    """Sent to the client verbatim instead of JSON-encoded."""


class FakeWS:
    def __init__(self, inbound: list[Any]) -> None:
        self._inbound = inbound
        self.sent: list[dict[str, Any]] = []
        self.closed = False

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    async def recv(self) -> str:
        item = self._inbound.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, RawFrame):
            return str(item)
        return json.dumps(item)

    async def close(self) -> None:
        self.closed = True


def make_client(
    monkeypatch: pytest.MonkeyPatch,
    inbound: list[Any],
    requests: list[httpx.Request],
) -> tuple[ChannelClient, FakeWS]:
    ws = FakeWS(inbound)
    connected: list[str] = []

    async def fake_connect(url: str) -> FakeWS:
        connected.append(url)
        return ws

    monkeypatch.setattr(channel_mod, "connect", fake_connect)
    monkeypatch.setattr(channel_mod, "log_event", lambda _: None)

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={
                "sessionId": "abc",
                "wsUrl": "ws://voice.test/ws/voice/abc",
                "token": "token_abc",
                "status": "created",
            })
        return httpx.Response(200, json={"status": "ended", "sessionId": "abc"})

    http = httpx.AsyncClient(base_url="http://voice.test", transport=httpx.MockTransport(handler))
    return ChannelClient("http://voice.test", http=http), ws


def test_open_send_close(monkeypatch: pytest.MonkeyPatch):
    requests: list[httpx.Request] = []
    client, ws = make_client(monkeypatch, [
        {"type": "response", "data": {"text": "What issue?", "state": "collecting_issue", "timestamp": "t"}},
    ], requests)

    async def scenario() -> str:
        info = await client.open()
        assert info.session_id == "abc"
        assert info.token == "token_abc"
        reply = await client.send_utterance("mobile app")
        await client.send_metrics({"latencyMs": 12})
        await client.close()
        return reply

    reply = asyncio.run(scenario())

    assert reply == "What issue?"
    assert client.last_state == "collecting_issue"
    assert ws.sent == [
        {"type": "text", "data": {"text": "mobile app"}},
        {"type": "metrics", "data": {"latencyMs": 12}},
    ]
    assert ws.closed
    assert [(r.method, r.url.path) for r in requests] == [
        ("POST", "/api/voice/session"),
        ("DELETE", "/api/voice/session/abc"),
    ]


def test_error_frame_raises_upstream_failure(monkeypatch: pytest.MonkeyPatch):
    client, _ = make_client(monkeypatch, [
        {"type": "error", "data": {"message": "Failed to generate AI response"}},
    ], [])

    async def scenario() -> None:
        await client.open()
        await client.send_utterance("hello")

    with pytest.raises(UpstreamFailure):
        asyncio.run(scenario())


def test_policy_close_raises_invalid_session(monkeypatch: pytest.MonkeyPatch):
    closed = ConnectionClosed(Close(1008, "Invalid session"), None)
    client, _ = make_client(monkeypatch, [closed], [])

    async def scenario() -> None:
        await client.open()
        await client.send_utterance("hello")

    with pytest.raises(InvalidSession):
        asyncio.run(scenario())


def test_send_before_open_fails():
    client = ChannelClient("http://voice.test")

    with pytest.raises(RuntimeError):
        asyncio.run(client.send_utterance("hello"))


@pytest.mark.parametrize("bad_frame", [
    "not json",
    "[1, 2]",
    '{"type": "response", "data": "oops"}',
])
def test_malformed_frame_is_skipped(monkeypatch: pytest.MonkeyPatch, bad_frame: str):
    reply = {"type": "response", "data": {"text": "What issue?", "state": "collecting_issue", "timestamp": "t"}}
    client, ws = make_client(monkeypatch, [RawFrame(bad_frame), reply], [])
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(channel_mod, "log_event", emitted.append)

    async def scenario() -> str:
        await client.open()
        return await client.send_utterance("mobile app")

    assert asyncio.run(scenario()) == "What issue?"
    assert ws.sent == [{"type": "text", "data": {"text": "mobile app"}}]
    assert [e["event_type"] for e in emitted].count("CLIENT_MALFORMED_FRAME") == 1


def test_adapter_survives_malformed_reply_frame(monkeypatch: pytest.MonkeyPatch):
    reply = {"type": "response", "data": {"text": "What issue?", "state": "collecting_issue", "timestamp": "t"}}
    client, _ = make_client(monkeypatch, [RawFrame("not json"), reply], [])
    monkeypatch.setattr(adapter_mod, "log_event", lambda _: None)

    class OneLine:
        async def recognize(self, config: Any) -> str:
            return "mobile app"

        def stop(self) -> None:
            pass

    class Mute:
        async def speak(self, text: str) -> None:
            pass

    adapter = SpeechIOAdapter(recognizer=OneLine(), synthesizer=Mute(), send_utterance=client.send_utterance)

    async def scenario() -> str | None:
        await client.open()
        return await adapter.talk()

    assert asyncio.run(scenario()) == "What issue?"
    assert adapter.state is VoiceState.IDLE


def test_close_releases_http_client_when_delete_fails(monkeypatch: pytest.MonkeyPatch):
    ws = FakeWS([])

    async def fake_connect(url: str) -> FakeWS:
        return ws

    monkeypatch.setattr(channel_mod, "connect", fake_connect)
    monkeypatch.setattr(channel_mod, "log_event", lambda _: None)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={
                "sessionId": "abc",
                "wsUrl": "ws://voice.test/ws/voice/abc",
                "token": "token_abc",
                "status": "created",
            })
        return httpx.Response(500, json={"error": "boom"})

    http = httpx.AsyncClient(base_url="http://voice.test", transport=httpx.MockTransport(handler))
    client = ChannelClient("http://voice.test", http=http)

    async def scenario() -> None:
        await client.open()
        await client.close()

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(scenario())

    assert ws.closed
    assert http.is_closed
