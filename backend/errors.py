"""
Error taxonomy for the intake service and its client adapter.

Every failure is scoped to one session or one operation; none of these
are meant to take the process down.
"""

from __future__ import annotations


class VoiceIntakeError(Exception):
    """Base class for all intake errors."""


class SessionNotFound(VoiceIntakeError):
    """Raised when a session id is unknown to the store."""

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidSession(VoiceIntakeError):
    """
    Raised when a channel connection names a missing or unknown session.

    The transport refuses the connection with a policy-violation close.
    """

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"Invalid session: {session_id}")
        self.session_id = session_id


class UpstreamFailure(VoiceIntakeError):
    """Raised when the external completion service fails or times out."""

    def __init__(self, message: str = "Failed to generate AI response") -> None:
        super().__init__(message)


class CapabilityUnavailable(VoiceIntakeError):
    """The client platform lacks speech recognition or synthesis."""


class CapabilityError(VoiceIntakeError):
    """A capture or synthesis attempt failed mid-operation."""
