"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- Stamp ts_ms when the caller leaves it out
- Can be switched off as a whole (ENABLE_JSON_LOGS=0)
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_enabled: bool = True


def configure(*, enabled: bool) -> None:
    """Turn JSONL output on or off for the whole process."""
    global _enabled  # pylint: disable=global-statement
    _enabled = enabled


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller supplies event_type, session_id and any payload fields.
    Values that are not JSON-native (datetimes, enums) are rendered with
    str(). This function never raises.
    """
    if not _enabled:
        return

    record: dict[str, Any] = dict(event)
    record.setdefault("ts_ms", int(time.time() * 1000))

    try:
        line = json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash a handler
        fallback: dict[str, Any] = {
            "ts_ms": record.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
