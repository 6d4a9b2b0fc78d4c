"""
Speech capability contracts and console stand-ins.

The adapter never talks to a platform speech API directly; it is handed
a recognizer and a synthesizer that satisfy these protocols. The console
versions let the whole loop run in a terminal: typed lines stand in for
speech, printed lines stand in for synthesis.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import Protocol, TextIO, runtime_checkable

from constants import SPEECH_LANGUAGE
from errors import CapabilityError


@dataclass(frozen=True)
class RecognitionConfig:
    """Single-shot capture: one final result, no interim results."""
    language: str = SPEECH_LANGUAGE
    continuous: bool = False
    interim_results: bool = False


@runtime_checkable
class SpeechRecognizer(Protocol):
    async def recognize(self, config: RecognitionConfig) -> str:
        """
        Capture one utterance and return its final transcript.

        Returns "" when the capture ends with nothing recognized.
        Raises CapabilityError on a capture failure.
        """

    def stop(self) -> None:
        """Ask an in-progress capture to finish early; recognize() then returns "" if nothing was final yet."""


@runtime_checkable
class SpeechSynthesizer(Protocol):
    async def speak(self, text: str) -> None:
        """
        Speak text and return once playback ends.

        Not cancellable. Raises CapabilityError on a synthesis failure.
        """


class InputClosed(CapabilityError):
    """The console input reached EOF; no further captures are possible."""


class ConsoleRecognizer:
    """
    Reads one line from a text stream per capture.

    stop() ends the current capture with "" right away. The blocking read
    keeps running in its worker thread and the line it eventually returns
    is handed to the next capture, so no typed input is lost.
    """

    def __init__(self, stream: TextIO | None = None, prompt: str = "you> ") -> None:
        self._stream = stream or sys.stdin
        self._prompt = prompt
        self._pending_read: asyncio.Future[str] | None = None
        self._stop_requested: asyncio.Event | None = None

    async def recognize(self, config: RecognitionConfig) -> str:
        sys.stdout.write(self._prompt)
        sys.stdout.flush()

        if self._pending_read is None:
            self._pending_read = asyncio.ensure_future(asyncio.to_thread(self._stream.readline))

        self._stop_requested = asyncio.Event()
        stop_wait = asyncio.ensure_future(self._stop_requested.wait())
        try:
            await asyncio.wait(
                {self._pending_read, stop_wait},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stop_wait.cancel()
            self._stop_requested = None

        if not self._pending_read.done():
            return ""

        read, self._pending_read = self._pending_read, None
        line = read.result()
        if line == "":
            raise InputClosed("Input stream closed")
        return line.strip()

    def stop(self) -> None:
        if self._stop_requested is not None:
            self._stop_requested.set()


class ConsoleSynthesizer:
    """Writes each reply as one line."""

    def __init__(self, stream: TextIO | None = None, prefix: str = "assistant> ") -> None:
        self._stream = stream or sys.stdout
        self._prefix = prefix

    async def speak(self, text: str) -> None:
        try:
            self._stream.write(f"{self._prefix}{text}\n")
            self._stream.flush()
        except (OSError, ValueError) as exc:
            raise CapabilityError(f"Speech output failed: {exc}") from exc
