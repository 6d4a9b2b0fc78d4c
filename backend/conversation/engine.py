"""
Conversation engines.

An engine turns one utterance into one reply for one session. Engines
mutate only the session passed in.

KeywordEngine:
    Deterministic keyword state machine (conversation.transitions).
    Never awaits and never raises, so the whole update happens in one
    synchronous step on the event loop.

LLMConversationEngine (conversation.llm_engine):
    Optional alternate that asks a chat-completion service for the reply.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from conversation.enums.state import ConversationState
from conversation.transitions import advance
from observability.logger import log_event
from session.voice_session import VoiceSession


@dataclass(frozen=True)
class EngineReply:
    """Reply text plus the session's state/context after the utterance."""
    text: str
    state: ConversationState
    context: dict[str, Any]


@runtime_checkable
class ConversationEngine(Protocol):
    """Capability every engine implements."""

    async def respond(self, session: VoiceSession, utterance: str) -> EngineReply: ...


class KeywordEngine:
    """
    Keyword-matching intake engine.

    rng:
        Source for ticket ids. Pass a seeded random.Random in tests.
    """

    def __init__(self, *, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def process(self, session: VoiceSession, utterance: str) -> EngineReply:
        """Advance the session by one utterance and return the reply."""
        transition = advance(session.state, session.ticket, utterance, rng=self._rng)

        from_state = session.state
        session.state = transition.state
        session.ticket = transition.ticket
        session.history.add_user_turn(utterance)
        session.history.add_assistant_turn(transition.reply)

        log_event({
            "event_type": "UTTERANCE_PROCESSED",
            "session_id": session.session_id,
            "engine": "keyword",
            "decision": transition.decision,
            "from_state": from_state.value,
            "to_state": transition.state.value,
        })

        return EngineReply(
            text=transition.reply,
            state=session.state,
            context=session.ticket.to_dict(),
        )

    async def respond(self, session: VoiceSession, utterance: str) -> EngineReply:
        return self.process(session, utterance)
