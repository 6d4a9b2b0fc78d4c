"""
In-memory session store.

One SessionStore is created per app instance and handed to every handler
(app.state.store); there is no module-level registry.

Concurrency:
- All methods run on the event loop thread. Each one mutates the mapping
  or a session without awaiting in between, so no lock is needed.
- delete() awaits the channel close only after the record is removed.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator
from uuid import uuid4

from constants import SESSION_TOKEN_PREFIX
from errors import SessionNotFound
from observability.logger import log_event
from session.voice_session import VoiceSession, utc_now


def _new_session_id() -> str:
    return str(uuid4())


class SessionStore:
    """
    Mapping of session_id -> VoiceSession with explicit lifecycle calls.

    Sessions never expire; they live until delete() is called.
    """

    def __init__(
        self,
        *,
        channel_address: Callable[[str], str],
        id_factory: Callable[[], str] = _new_session_id,
    ) -> None:
        self._sessions: dict[str, VoiceSession] = {}
        self._channel_address = channel_address
        self._id_factory = id_factory

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self) -> tuple[VoiceSession, str]:
        """
        Allocate a session in the greeting state with an empty ticket.

        Returns:
            (session, channel_address)
        """
        session_id = self._id_factory()
        session = VoiceSession(
            session_id=session_id,
            token=f"{SESSION_TOKEN_PREFIX}{session_id}",
        )
        self._sessions[session_id] = session

        log_event({
            "event_type": "SESSION_CREATED",
            "session_id": session_id,
        })

        return session, self._channel_address(session_id)

    def get(self, session_id: str | None) -> VoiceSession:
        """
        Return the session or raise SessionNotFound.

        Ids taken from request bodies may be any JSON value; anything that
        is not a string is treated as unknown.
        """
        if not isinstance(session_id, str) or session_id not in self._sessions:
            raise SessionNotFound(session_id)
        return self._sessions[session_id]

    async def delete(self, session_id: str) -> None:
        """
        Close any attached channel and remove the session.

        Raises:
            SessionNotFound if the session does not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)

        connection = session.connection
        session.connection = None

        log_event({
            "event_type": "SESSION_ENDED",
            "session_id": session_id,
            "had_connection": connection is not None,
        })

        if connection is not None:
            await connection.close()

    # ------------------------------------------------------------------
    # Channel attachment
    # ------------------------------------------------------------------

    def attach_connection(self, session_id: str | None, connection: Any) -> VoiceSession:
        """
        Record a live channel handle on the session.

        A second attach replaces the first handle; the old channel is not
        closed here.

        Raises:
            SessionNotFound if the session does not exist.
        """
        session = self.get(session_id)
        session.connection = connection
        session.connected_at = utc_now()

        log_event({
            "event_type": "CHANNEL_ATTACHED",
            "session_id": session.session_id,
        })
        return session

    def detach_connection(self, session_id: str, connection: Any = None) -> None:
        """
        Clear the channel handle.

        No-op if already detached or if the session was deleted meanwhile.
        When connection is given, only that handle is cleared, so a stale
        channel closing late does not detach its replacement.
        """
        session = self._sessions.get(session_id)
        if session is None or session.connection is None:
            return
        if connection is not None and session.connection is not connection:
            return

        session.connection = None
        log_event({
            "event_type": "CHANNEL_DETACHED",
            "session_id": session_id,
        })

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def append_metric(self, session_id: str | None, entry: dict[str, Any]) -> dict[str, Any]:
        """
        Append a client-supplied metric entry stamped with server time.

        The entry is copied; the caller's dict is left untouched.

        Raises:
            SessionNotFound if the session does not exist.
        """
        session = self.get(session_id)
        stored = {**entry, "timestamp": utc_now().isoformat()}
        session.metrics.append(stored)

        log_event({
            "event_type": "METRIC_LOGGED",
            "session_id": session.session_id,
            "metric": stored,
        })
        return stored

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._sessions))
