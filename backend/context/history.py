"""
Bounded record of what the caller and the assistant said in one session.

The LLM engine replays it on every request; the keyword engine only
appends to it.

Limits: MAX_HISTORY_TURNS turns and MAX_HISTORY_CHARS characters. Adding
a turn evicts from the front until both hold again, except that the turn
just added always stays, even when it alone is over the character limit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from constants import MAX_HISTORY_CHARS, MAX_HISTORY_TURNS
from observability.logger import log_event


Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Turn:
    """Single conversation turn."""
    role: Role
    text: str
    turn_id: int
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConversationHistory:
    """
    Mutable, bounded history owned by one VoiceSession.

    Invariants:
    - Turns are stored in chronological order
    - turn_id is monotonic; dropped turns leave gaps
    """

    def __init__(
        self,
        session_id: str | None = None,
        *,
        max_turns: int = MAX_HISTORY_TURNS,
        max_chars: int = MAX_HISTORY_CHARS,
    ) -> None:
        self._session_id = session_id
        self._max_turns = max_turns
        self._max_chars = max_chars
        self._turns: list[Turn] = []
        self._chars = 0
        self._next_turn_id = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_user_turn(self, text: str) -> Turn:
        """Record what the caller said."""
        return self._append("user", text)

    def add_assistant_turn(self, text: str) -> Turn:
        """Record what the assistant replied."""
        return self._append("assistant", text)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def serialize(self) -> list[dict[str, str]]:
        """Turns as chat-completion messages, oldest first."""
        return [{"role": t.role, "content": t.text} for t in self._turns]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _append(self, role: Role, text: str) -> Turn:
        turn = Turn(role=role, text=text, turn_id=self._next_turn_id)
        self._next_turn_id += 1
        self._turns.append(turn)
        self._chars += len(text)
        self._enforce_limits()
        return turn

    def _over_limits(self) -> bool:
        return len(self._turns) > self._max_turns or self._chars > self._max_chars

    def _enforce_limits(self) -> None:
        # The newest turn is never dropped
        while len(self._turns) > 1 and self._over_limits():
            oldest = self._turns.pop(0)
            self._chars -= len(oldest.text)
            log_event({
                "event_type": "HISTORY_TURN_DROPPED",
                "session_id": self._session_id,
                "turn_id": oldest.turn_id,
                "role": oldest.role,
                "char_count": len(oldest.text),
            })

        if self._over_limits():
            log_event({
                "event_type": "HISTORY_SINGLE_TURN_OVERSIZED",
                "session_id": self._session_id,
                "turn_id": self._turns[0].turn_id,
                "char_count": self._chars,
            })
