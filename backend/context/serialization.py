"""
Message list for one chat-completion request.

The current utterance is not yet in the stored history; it is appended
last, after the system prompt and the replayed turns.
"""

from __future__ import annotations

from context.history import ConversationHistory


def serialize_for_llm(
    *,
    system_prompt: str,
    history: ConversationHistory,
    user_text: str,
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        *history.serialize(),
        {"role": "user", "content": user_text},
    ]
