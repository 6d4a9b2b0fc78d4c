"""
JSON framing for the per-session voice channel.

Client -> Server:
    {"type": "text",    "data": {"text": "<utterance>"}}
    {"type": "metrics", "data": {...latency fields...}}

Server -> Client:
    {"type": "response", "data": {"text": "...", "state": "...", "timestamp": "..."}}
    {"type": "error",    "data": {"message": "..."}}

Usage example:

    try:
        frame = decode_client_frame(payload)
    except FrameError as e:
        log_event({"event_type": "FRAME_DROPPED", "error": str(e)})
        return

    if isinstance(frame, TextFrame):
        ...
    elif isinstance(frame, MetricsFrame):
        ...
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union


# -------------------------
# Exceptions
# -------------------------

class FrameError(Exception):
    """Base class for channel framing errors. The frame must be dropped."""


class MalformedFrame(FrameError):
    """
    Raised when a payload is not a JSON object with a string "type" and an
    object "data", or a known frame lacks a required field.
    """


class UnknownFrameType(FrameError):
    """Raised when the "type" tag is not one the server understands."""

    def __init__(self, frame_type: str) -> None:
        super().__init__(f"Unknown frame type: {frame_type!r}")
        self.frame_type = frame_type


# -------------------------
# Frame types
# -------------------------

@dataclass(frozen=True)
class TextFrame:
    """One finalized utterance from the client."""
    text: str


@dataclass(frozen=True)
class MetricsFrame:
    """Opaque client latency measurement."""
    data: dict[str, Any]


ClientFrame = Union[TextFrame, MetricsFrame]


@dataclass(frozen=True)
class ResponseFrame:
    """Assistant reply pushed to the client."""
    text: str
    state: str
    timestamp: datetime

    def to_json(self) -> dict[str, Any]:
        return {
            "type": "response",
            "data": {
                "text": self.text,
                "state": self.state,
                "timestamp": self.timestamp.isoformat(),
            },
        }


@dataclass(frozen=True)
class ErrorFrame:
    """Recoverable per-utterance failure pushed to the client."""
    message: str

    def to_json(self) -> dict[str, Any]:
        return {"type": "error", "data": {"message": self.message}}


# -------------------------
# Decode / encode
# -------------------------

def decode_client_frame(payload: str | bytes) -> ClientFrame:
    """
    Parse one inbound channel message.

    Raises:
        MalformedFrame: payload is not a well-formed tagged frame.
        UnknownFrameType: tag is not "text" or "metrics".
    """
    try:
        message = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedFrame(f"Invalid JSON: {e}") from e

    if not isinstance(message, dict):
        raise MalformedFrame("Frame must be a JSON object")

    frame_type = message.get("type")
    if not isinstance(frame_type, str):
        raise MalformedFrame("Frame is missing a string 'type'")

    data = message.get("data")
    if not isinstance(data, dict):
        raise MalformedFrame(f"Frame {frame_type!r} is missing an object 'data'")

    if frame_type == "text":
        text = data.get("text")
        if not isinstance(text, str):
            raise MalformedFrame("Text frame is missing a string 'text'")
        return TextFrame(text=text)

    if frame_type == "metrics":
        return MetricsFrame(data=dict(data))

    raise UnknownFrameType(frame_type)


def response_frame(text: str, state: str) -> ResponseFrame:
    """Build a response frame stamped with the current UTC time."""
    return ResponseFrame(text=text, state=state, timestamp=datetime.now(timezone.utc))
