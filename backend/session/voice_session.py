"""
Voice session container.

- Owns conversation state and ticket fields (mutated by the engine only)
- Owns the attached channel handle (mutated by the store only)
- Accumulates client-supplied metric entries
- NOT a state machine; contains no conversation logic
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from context.history import ConversationHistory
from conversation.enums.state import ConversationState
from conversation.ticket import TicketContext


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


# ---------------------------------------------------------------------
# VoiceSession
# ---------------------------------------------------------------------


@dataclass
class VoiceSession:
    """Mutable runtime container for a single intake conversation."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    token: str
    created_at: datetime = field(default_factory=utc_now)

    # ------------------------------------------------------------------
    # Conversation (engine-controlled)
    # ------------------------------------------------------------------

    state: ConversationState = ConversationState.GREETING
    ticket: TicketContext = field(default_factory=TicketContext)
    history: ConversationHistory = field(init=False)

    # ------------------------------------------------------------------
    # Metrics (append-only, never read by the engine)
    # ------------------------------------------------------------------

    metrics: list[dict[str, Any]] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Channel (store-controlled)
    # ------------------------------------------------------------------

    connection: Any = None  # starlette WebSocket in practice
    connected_at: datetime | None = None

    def __post_init__(self) -> None:
        self.history = ConversationHistory(session_id=self.session_id)

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """
        Return the session as served by GET /api/voice/session/{id}.

        Two calls with no utterance in between return equal snapshots.
        """
        return {
            "sessionId": self.session_id,
            "state": self.state.value,
            "context": self.ticket.to_dict(),
            "metrics": [dict(m) for m in self.metrics],
            "createdAt": isoformat(self.created_at),
            "connectedAt": isoformat(self.connected_at),
            "isConnected": self.is_connected,
        }

    def log_context(self) -> dict[str, Any]:
        """Standard logging fields for this session."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "connected": self.is_connected,
        }
