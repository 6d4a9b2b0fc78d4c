"""
Client side of the intake API.

- Creates a session over HTTP (httpx)
- Attaches to the session's WebSocket channel (websockets)
- Sends utterances as text frames and waits for the matching reply
- Reports latency measurements as metrics frames
- Ends the session over HTTP on close
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from errors import InvalidSession, UpstreamFailure
from observability.logger import log_event


@dataclass(frozen=True)
class SessionInfo:
    """Body of POST /api/voice/session."""
    session_id: str
    ws_url: str
    token: str


class ChannelClient:
    """
    One client == one session == one channel.

    Replies are matched to utterances by order: the server answers every
    text frame with exactly one response or error frame.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._http = http or httpx.AsyncClient(base_url=base_url)
        self._ws: ClientConnection | None = None
        self.session: SessionInfo | None = None
        self.last_state: str | None = None

    async def open(self) -> SessionInfo:
        """Create a session and attach to its channel."""
        response = await self._http.post("/api/voice/session")
        response.raise_for_status()
        body = response.json()

        self.session = SessionInfo(
            session_id=body["sessionId"],
            ws_url=body["wsUrl"],
            token=body["token"],
        )
        self._ws = await connect(self.session.ws_url)

        log_event({
            "event_type": "CLIENT_CHANNEL_OPEN",
            "session_id": self.session.session_id,
        })
        return self.session

    async def send_utterance(self, text: str) -> str:
        """
        Send one utterance and return the assistant reply text.

        Raises:
            UpstreamFailure if the server answers with an error frame.
            InvalidSession if the server refused or dropped the channel
                with a policy-violation close.
            ConnectionError if the channel closed for any other reason.
        """
        ws = self._require_ws()
        try:
            await ws.send(json.dumps({"type": "text", "data": {"text": text}}))

            while True:
                raw = await ws.recv()
                decoded = _decode_server_frame(raw)
                if decoded is None:
                    log_event({
                        "event_type": "CLIENT_MALFORMED_FRAME",
                        "payload_preview": raw[:100],
                    })
                    continue

                frame_type, data = decoded

                if frame_type == "response":
                    self.last_state = data.get("state")
                    return data.get("text", "")
                if frame_type == "error":
                    raise UpstreamFailure(data.get("message", "Failed to generate AI response"))

                log_event({
                    "event_type": "CLIENT_UNKNOWN_FRAME",
                    "frame_type": frame_type,
                })
        except ConnectionClosed as exc:
            if exc.rcvd is not None and exc.rcvd.code == 1008:
                raise InvalidSession(self.session.session_id if self.session else None) from exc
            raise ConnectionError(f"Channel closed: {exc}") from exc

    async def send_metrics(self, data: dict[str, Any]) -> None:
        """Send a latency measurement over the channel (no reply expected)."""
        ws = self._require_ws()
        try:
            await ws.send(json.dumps({"type": "metrics", "data": data}))
        except ConnectionClosed as exc:
            raise ConnectionError(f"Channel closed: {exc}") from exc

    async def close(self, *, end_session: bool = True) -> None:
        """
        Close the channel and, by default, end the session on the server.

        The HTTP client is closed even when the DELETE fails.
        """
        try:
            if self._ws is not None:
                ws, self._ws = self._ws, None
                await ws.close()

            if end_session and self.session is not None:
                response = await self._http.delete(f"/api/voice/session/{self.session.session_id}")
                if response.status_code != 404:
                    response.raise_for_status()
        finally:
            await self._http.aclose()

    def _require_ws(self) -> ClientConnection:
        if self._ws is None:
            raise RuntimeError("Channel is not open; call open() first")
        return self._ws


def _decode_server_frame(raw: str | bytes) -> tuple[Any, dict[str, Any]] | None:
    """Return (type, data) for a JSON object frame, or None if malformed."""
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(message, dict):
        return None

    data = message.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return None

    return message.get("type"), data
