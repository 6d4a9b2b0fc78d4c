"""
Route registration for the intake API.

Responsibilities:
- Define HTTP session lifecycle and metrics endpoints
- Wire SessionGateway to the per-session WebSocket lifecycle
- Pull dependencies (store, engine, config) from app.state
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, FastAPI, WebSocket, WebSocketDisconnect

from constants import CHANNEL_PATH_PREFIX, WS_CLOSE_INVALID_SESSION_REASON, WS_CLOSE_POLICY_VIOLATION
from errors import InvalidSession
from observability.logger import log_event
from session.gateway import GatewayResult, SessionGateway
from session.store import SessionStore


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""

    def _store() -> SessionStore:
        return app.state.store

    @app.get("/health")
    async def health() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return {
            "status": "ok",
            "activeSessions": len(_store()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @app.post("/api/voice/session")
    async def create_session() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        session, ws_url = _store().create()
        return {
            "sessionId": session.session_id,
            "wsUrl": ws_url,
            "token": session.token,
            "status": "created",
        }

    @app.get("/api/voice/session/{session_id}")
    async def get_session(session_id: str) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return _store().get(session_id).snapshot()

    @app.delete("/api/voice/session/{session_id}")
    async def end_session(session_id: str) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        await _store().delete(session_id)
        return {"status": "ended", "sessionId": session_id}

    @app.post("/api/voice/metrics")
    async def log_metrics( # pyright: ignore[reportUnusedFunction]
        payload: dict[str, Any] = Body(...),
    ) -> dict[str, Any]:
        session_id = payload.get("sessionId")
        entry = {k: v for k, v in payload.items() if k != "sessionId"}
        stored = _store().append_metric(session_id, entry)
        return {"status": "logged", "metrics": stored}

    # ------------------------------------------------------------------
    # Channel
    # ------------------------------------------------------------------

    @app.websocket(CHANNEL_PATH_PREFIX + "/{session_id}")
    async def voice_channel(ws: WebSocket, session_id: str) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = SessionGateway(store=_store(), engine=app.state.engine)

        try:
            result = gateway.on_ws_connect(session_id, ws)
        except InvalidSession:
            await ws.close(
                code=WS_CLOSE_POLICY_VIOLATION,
                reason=WS_CLOSE_INVALID_SESSION_REASON,
            )
            return

        try:
            await _flush_gateway_result(ws, result)

            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(code=msg.get("code", 1000))

                payload = msg.get("text")
                if payload is None:
                    payload = msg.get("bytes")
                if payload is None:
                    continue

                result = await gateway.on_json_message(payload)
                await _flush_gateway_result(ws, result)

        except WebSocketDisconnect:
            gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "session_id": session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            gateway.on_ws_disconnect(reason="server_error")


async def _flush_gateway_result(
    ws: WebSocket,
    result: GatewayResult,
) -> None:
    for msg in result.outbound_json:
        await ws.send_text(json.dumps(msg, ensure_ascii=False))
