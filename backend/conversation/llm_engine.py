"""
LLM-backed conversation engine.

- Sends system prompt + session history + current utterance to an
  OpenAI-compatible chat completion endpoint (OpenAI or Groq)
- One non-streaming request per utterance, bounded by a timeout
- Does NOT retry; any provider failure or timeout raises UpstreamFailure
- Does NOT change session.state or session.ticket; only history grows
"""

from __future__ import annotations

import asyncio
from typing import Any

from constants import LLM_MAX_TOKENS, LLM_TEMPERATURE, LLM_TOP_P
from context.serialization import serialize_for_llm
from conversation.engine import EngineReply
from conversation.prompts import LLM_EMPTY_FALLBACK, SYSTEM_PROMPT_V1, SYSTEM_PROMPT_VERSION
from errors import UpstreamFailure
from observability.logger import log_event
from session.voice_session import VoiceSession


class LLMConversationEngine:
    """
    Chat-completion engine.

    Args:
        client:
            openai.AsyncOpenAI (or anything exposing chat.completions.create).
        model:
            Model identifier string.
        timeout_s:
            Upper bound for one completion request.
    """

    def __init__(
        self,
        *,
        client: Any,
        model: str,
        timeout_s: float,
        system_prompt: str = SYSTEM_PROMPT_V1,
    ) -> None:
        self._client = client
        self._model = model
        self._timeout_s = timeout_s
        self._system_prompt = system_prompt

    async def respond(self, session: VoiceSession, utterance: str) -> EngineReply:
        messages = serialize_for_llm(
            system_prompt=self._system_prompt,
            history=session.history,
            user_text=utterance,
        )

        log_event({
            "event_type": "LLM_REQUEST",
            "session_id": session.session_id,
            "model": self._model,
            "prompt_version": SYSTEM_PROMPT_VERSION,
            "message_count": len(messages),
        })

        try:
            completion = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    temperature=LLM_TEMPERATURE,
                    max_tokens=LLM_MAX_TOKENS,
                    top_p=LLM_TOP_P,
                    stream=False,
                ),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as exc:
            log_event({
                "event_type": "LLM_TIMEOUT",
                "session_id": session.session_id,
                "timeout_s": self._timeout_s,
            })
            raise UpstreamFailure() from exc
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "LLM_ERROR",
                "session_id": session.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            raise UpstreamFailure() from exc

        text = self._extract_text(completion) or LLM_EMPTY_FALLBACK

        # History is updated only after the provider answered
        session.history.add_user_turn(utterance)
        session.history.add_assistant_turn(text)

        log_event({
            "event_type": "UTTERANCE_PROCESSED",
            "session_id": session.session_id,
            "engine": "llm",
            "state": session.state.value,
            "reply_len": len(text),
        })

        return EngineReply(
            text=text,
            state=session.state,
            context=session.ticket.to_dict(),
        )

    @staticmethod
    def _extract_text(completion: Any) -> str:
        """Pull the message content out of an OpenAI-format response."""
        try:
            return (completion.choices[0].message.content or "").strip()
        except (AttributeError, IndexError):
            return ""
