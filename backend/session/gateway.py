"""
Session gateway.

Responsibilities:
- Binds one channel connection to one existing session
- Decodes inbound channel frames and routes them:
    text    -> conversation engine -> response frame
    metrics -> session metric log
- Drops malformed or unknown frames (logged, never fatal)
- Detaches (never deletes) the session when the channel closes

NOT responsible for:
- Creating or deleting sessions (HTTP routes do that via the store)
- Any conversation logic (engine)
- Socket I/O (routes flush GatewayResult)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from conversation.engine import ConversationEngine
from errors import InvalidSession, SessionNotFound, UpstreamFailure
from observability.logger import log_event
from observability.metrics import timed
from protocol.frames import (
    ErrorFrame,
    FrameError,
    MetricsFrame,
    TextFrame,
    UnknownFrameType,
    decode_client_frame,
    response_frame,
)
from session.store import SessionStore


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to the client, in order.
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """
    One gateway == one channel connection == one session.

    Frames are handled one at a time in arrival order by the caller's
    receive loop.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        engine: ConversationEngine,
    ) -> None:
        self._store = store
        self._engine = engine
        self.session_id: str | None = None
        self._connection: Any = None

    def on_ws_connect(self, session_id: str | None, connection: Any) -> GatewayResult:
        """
        Attach the connection to its session.

        Raises:
            InvalidSession if session_id is missing or unknown.
        """
        if not session_id:
            raise InvalidSession(session_id)

        try:
            self._store.attach_connection(session_id, connection)
        except SessionNotFound as exc:
            log_event({
                "event_type": "CHANNEL_REJECTED",
                "session_id": session_id,
                "reason": "unknown_session",
            })
            raise InvalidSession(session_id) from exc

        self.session_id = session_id
        self._connection = connection
        return GatewayResult()

    def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Detach the session. The session itself survives."""
        if self.session_id is None:
            log_event({
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        log_event({
            "event_type": "WS_DISCONNECTED",
            "session_id": self.session_id,
            "reason": reason,
        })
        self._store.detach_connection(self.session_id, self._connection)
        return GatewayResult()

    async def on_json_message(self, payload: str | bytes) -> GatewayResult:
        """Route one inbound channel frame."""
        if self.session_id is None:
            log_event({
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        try:
            frame = decode_client_frame(payload)
        except UnknownFrameType as e:
            log_event({
                "event_type": "UNKNOWN_FRAME_TYPE",
                "session_id": self.session_id,
                "frame_type": e.frame_type,
            })
            return GatewayResult()
        except FrameError as e:
            log_event({
                "event_type": "FRAME_DECODE_ERROR",
                "session_id": self.session_id,
                "error": str(e),
                "payload_preview": payload[:100],
            })
            return GatewayResult()

        try:
            if isinstance(frame, TextFrame):
                return await self._on_text(frame)
            if isinstance(frame, MetricsFrame):
                self._store.append_metric(self.session_id, frame.data)
                return GatewayResult()
        except SessionNotFound:
            # Deleted over HTTP while the channel was still open
            log_event({
                "event_type": "MESSAGE_FOR_ENDED_SESSION",
                "session_id": self.session_id,
            })
            return GatewayResult()

        raise TypeError(f"Unhandled frame: {frame!r}")

    # ------------------------------------------------------------------
    # Frame handlers
    # ------------------------------------------------------------------

    async def _on_text(self, frame: TextFrame) -> GatewayResult:
        session = self._store.get(self.session_id)

        log_event({
            "event_type": "UTTERANCE_RECEIVED",
            "session_id": session.session_id,
            "state": session.state.value,
            "text_len": len(frame.text),
        })

        try:
            with timed(
                "utterance_processing",
                session_id=session.session_id,
                state=session.state.value,
            ):
                reply = await self._engine.respond(session, frame.text)
        except UpstreamFailure as e:
            return GatewayResult(outbound_json=(ErrorFrame(message=str(e)).to_json(),))

        return GatewayResult(
            outbound_json=(response_frame(reply.text, reply.state.value).to_json(),)
        )
