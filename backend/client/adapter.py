"""
Speech I/O adapter.

Wraps a speech recognizer and a speech synthesizer behind the client voice
state machine (client.voice_state) and hands finalized utterances to the
conversation channel.

Concurrency:
- At most one capture and one synthesis are in flight. The single control
  is disabled while processing or speaking, so overlapping turns cannot be
  started through toggle().
- A capture can be stopped early; a synthesis always runs to completion.

Failures:
- Missing capability -> CapabilityUnavailable, failed capture/synthesis ->
  CapabilityError. Both move the adapter to error and keep the text that
  was about to be spoken in fallback_text so a UI can show it instead.
- A channel failure (UpstreamFailure or a dropped connection) is handled
  the same way.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Literal

from client.capabilities import RecognitionConfig, SpeechRecognizer, SpeechSynthesizer
from client.voice_state import VoiceSignal, VoiceState, control_enabled, next_voice_state
from constants import SPEECH_LANGUAGE
from conversation.prompts import GREETING
from errors import CapabilityError, CapabilityUnavailable, VoiceIntakeError
from observability.logger import log_event


@dataclass(frozen=True)
class LogEntry:
    """One line of the on-screen conversation log."""
    speaker: Literal["user", "assistant"]
    text: str
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SpeechIOAdapter:
    """
    Push-to-talk voice loop for one conversation.

    Args:
        recognizer:
            Speech-to-text capability, or None if the platform has none.
        synthesizer:
            Text-to-speech capability, or None if the platform has none.
        send_utterance:
            Coroutine that delivers one utterance and returns the reply text.
        on_state_change:
            Optional callback invoked with every new state.
    """

    def __init__(
        self,
        *,
        recognizer: SpeechRecognizer | None,
        synthesizer: SpeechSynthesizer | None,
        send_utterance: Callable[[str], Awaitable[str]],
        language: str = SPEECH_LANGUAGE,
        on_state_change: Callable[[VoiceState], None] | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._synthesizer = synthesizer
        self._send_utterance = send_utterance
        self._config = RecognitionConfig(language=language)
        self._on_state_change = on_state_change

        self._state = VoiceState.IDLE
        self._turn_task: asyncio.Task[str | None] | None = None

        self.last_error: str | None = None
        self.last_exception: VoiceIntakeError | None = None
        self.fallback_text: str | None = None
        self.last_latency_ms: float | None = None
        self.log: list[LogEntry] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> VoiceState:
        return self._state

    @property
    def control_enabled(self) -> bool:
        return control_enabled(self._state)

    def _signal(self, signal: VoiceSignal) -> None:
        new_state = next_voice_state(self._state, signal)
        if new_state is self._state:
            return

        log_event({
            "event_type": "VOICE_STATE_CHANGED",
            "signal": signal.value,
            "from_state": self._state.value,
            "to_state": new_state.value,
        })
        self._state = new_state
        if self._on_state_change is not None:
            self._on_state_change(new_state)

    def _fail(self, exc: VoiceIntakeError, *, fallback_text: str | None) -> None:
        self.last_error = str(exc)
        self.last_exception = exc
        self.fallback_text = fallback_text
        log_event({
            "event_type": "VOICE_CAPABILITY_FAILED",
            "exception": type(exc).__name__,
            "message": str(exc),
        })
        self._signal(VoiceSignal.CAPABILITY_FAILED)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def toggle(self) -> asyncio.Task[str | None] | None:
        """
        The push-to-talk control.

        idle      -> start a turn in the background and return its task
        listening -> stop the capture early
        otherwise -> ignored (control disabled)
        """
        if self._state is VoiceState.IDLE:
            self._turn_task = asyncio.create_task(self.talk())
            return self._turn_task

        if self._state is VoiceState.LISTENING and self._recognizer is not None:
            self._recognizer.stop()

        return None

    def retry(self) -> None:
        """Leave the error state. No-op in any other state."""
        if self._state is VoiceState.ERROR:
            self.last_error = None
            self.last_exception = None
            self.fallback_text = None
        self._signal(VoiceSignal.RETRY)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def talk(self) -> str | None:
        """
        Run one full turn: capture, send, speak the reply.

        Returns the reply text, or None if the turn did not complete
        (nothing heard, a failure, or the adapter was not idle).
        """
        if self._state is not VoiceState.IDLE:
            return None

        self.last_error = None
        self._signal(VoiceSignal.TALK)

        try:
            if self._recognizer is None:
                raise CapabilityUnavailable("Speech recognition not supported")
            utterance = await self._recognizer.recognize(self._config)
        except VoiceIntakeError as exc:
            self._fail(exc, fallback_text=None)
            return None

        if not utterance:
            self._signal(VoiceSignal.CAPTURE_ENDED)
            return None

        self.log.append(LogEntry(speaker="user", text=utterance))
        self._signal(VoiceSignal.UTTERANCE_FINAL)

        started_ns = time.monotonic_ns()
        try:
            reply = await self._send_utterance(utterance)
        except (VoiceIntakeError, ConnectionError) as exc:
            self._fail(
                exc if isinstance(exc, VoiceIntakeError) else CapabilityError(str(exc)),
                fallback_text=None,
            )
            return None
        self.last_latency_ms = (time.monotonic_ns() - started_ns) / 1_000_000

        self.log.append(LogEntry(speaker="assistant", text=reply))
        self._signal(VoiceSignal.REPLY_READY)

        if not await self._synthesize(reply):
            return None
        return reply

    async def speak(self, text: str = GREETING) -> bool:
        """
        Speak assistant-initiated text (the greeting) from idle.

        Returns True when playback finished.
        """
        if self._state is not VoiceState.IDLE:
            return False

        self.log.append(LogEntry(speaker="assistant", text=text))
        self._signal(VoiceSignal.SPEAK)
        return await self._synthesize(text)

    async def _synthesize(self, text: str) -> bool:
        try:
            if self._synthesizer is None:
                raise CapabilityUnavailable("Speech synthesis not supported")
            await self._synthesizer.speak(text)
        except VoiceIntakeError as exc:
            self._fail(exc, fallback_text=text)
            return False

        self._signal(VoiceSignal.SYNTHESIS_DONE)
        return True
