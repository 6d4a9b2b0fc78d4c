"""
Timing helpers for observability.

Responsibilities:
- Measure durations using monotonic time (immune to clock changes)
- Emit one METRIC_TIMER event per measurement via observability.logger
- Expose the measured duration to the caller after the block exits

Client-supplied latency measurements (the /metrics endpoint and the
channel "metrics" frame) are stored on the session, not here.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from observability.logger import log_event


@dataclass
class Timing:
    """Result holder filled in when a timed() block exits."""
    name: str
    duration_ms: float | None = None


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    state: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[Timing]:
    """
    Context manager for measuring durations safely.

    Guarantees:
    - Metric is emitted exactly once, even if the block raises
    - Exceptions inside the block are NOT suppressed

    Usage:
        with timed("utterance_processing", session_id=sid) as timing:
            reply = await engine.respond(session, text)
        timing.duration_ms
    """
    timing = Timing(name=name)
    start_ns = time.monotonic_ns()
    try:
        yield timing
    finally:
        timing.duration_ms = (time.monotonic_ns() - start_ns) / 1_000_000
        log_event({
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": round(timing.duration_ms, 3),
            "session_id": session_id,
            "state": state,
            "details": details or {},
        })
