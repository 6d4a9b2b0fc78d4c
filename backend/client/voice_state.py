"""
Client voice state machine.

idle -> listening -> processing -> speaking -> idle, plus error.

Rules:
- next_voice_state() is pure and total: pairs not in the table leave the
  state unchanged.
- error is left only through an explicit retry.
"""

from __future__ import annotations

from enum import Enum


class VoiceState(str, Enum):
    """What the speech adapter is doing right now."""

    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"
    ERROR = "error"


class VoiceSignal(str, Enum):
    """Facts that move the adapter between states."""

    TALK = "talk"                        # push-to-talk pressed while idle
    CAPTURE_ENDED = "capture_ended"      # capture closed with no utterance
    UTTERANCE_FINAL = "utterance_final"
    REPLY_READY = "reply_ready"
    SPEAK = "speak"                      # assistant-initiated speech (greeting)
    SYNTHESIS_DONE = "synthesis_done"
    CAPABILITY_FAILED = "capability_failed"
    RETRY = "retry"


_TRANSITIONS: dict[tuple[VoiceState, VoiceSignal], VoiceState] = {
    (VoiceState.IDLE, VoiceSignal.TALK): VoiceState.LISTENING,
    (VoiceState.IDLE, VoiceSignal.SPEAK): VoiceState.SPEAKING,
    (VoiceState.LISTENING, VoiceSignal.CAPTURE_ENDED): VoiceState.IDLE,
    (VoiceState.LISTENING, VoiceSignal.UTTERANCE_FINAL): VoiceState.PROCESSING,
    (VoiceState.PROCESSING, VoiceSignal.REPLY_READY): VoiceState.SPEAKING,
    (VoiceState.SPEAKING, VoiceSignal.SYNTHESIS_DONE): VoiceState.IDLE,
    (VoiceState.ERROR, VoiceSignal.RETRY): VoiceState.IDLE,
}


def next_voice_state(state: VoiceState, signal: VoiceSignal) -> VoiceState:
    """Return the state after signal; capability failure wins from anywhere."""
    if signal is VoiceSignal.CAPABILITY_FAILED:
        return VoiceState.ERROR
    return _TRANSITIONS.get((state, signal), state)


def control_enabled(state: VoiceState) -> bool:
    """The single push-to-talk control is live only while idle or listening."""
    return state in (VoiceState.IDLE, VoiceState.LISTENING)
