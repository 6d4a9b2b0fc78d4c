# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from datetime import datetime, timezone
from typing import Any

import pytest

from observability import logger


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    monkeypatch.setattr(logger, "_enabled", True)
    return lines


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "ts_ms": 1,
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    assert len(captured) == 1
    assert json.loads(captured[0]) == payload


def test_log_event_stamps_ts_ms(captured: list[str]) -> None:
    logger.log_event({"event_type": "TEST"})

    decoded = json.loads(captured[0])
    assert isinstance(decoded["ts_ms"], int)


def test_log_event_renders_non_json_values(captured: list[str]) -> None:
    ts = datetime(2024, 5, 6, tzinfo=timezone.utc)

    logger.log_event({"event_type": "TEST", "at": ts})

    assert json.loads(captured[0])["at"] == str(ts)


def test_disabled_logger_writes_nothing(captured: list[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logger, "_enabled", False)

    logger.log_event({"event_type": "TEST"})

    assert not captured
