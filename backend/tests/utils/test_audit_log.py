import json
from datetime import date
from typing import Any, List

import pytest
from timeslots.utils import audit_log
from timeslots.utils.request_id import set_request_id


def test_emit_audit_log_outputs_json(monkeypatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    dummy_logger = DummyLogger()
    monkeypatch.setattr(audit_log, "_audit_logger", dummy_logger)

    set_request_id("req-123")
    audit_log.emit_audit_log(
        action="reservation.created",
        initiator="user",
        reservation_id="r1",
        day=date(2025, 5, 2),
        start_time="10:00",
        end_time="11:00",
        kind="manual",
    )
    set_request_id(None)
    assert len(messages) == 1
    payload = json.loads(messages[0])
    assert payload["action"] == "reservation.created"
    assert payload["initiator"] == "user"
    assert payload["request_id"] == "req-123"
    assert payload["date"] == "2025-05-02"
    assert payload["kind"] == "manual"
    assert "event_id" not in payload
    assert "timestamp" in payload


def test_emit_audit_log_merges_extra(monkeypatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    audit_log.emit_audit_log(
        action="reservation.event_released",
        initiator="event_system",
        reservation_id=None,
        event_id="evt-9",
        extra={"removed": 1},
    )
    payload = json.loads(messages[0])
    assert payload["event_id"] == "evt-9"
    assert payload["removed"] == 1
    assert "reservation_id" not in payload


def test_emit_audit_log_raises_on_logger_failure(monkeypatch) -> None:
    class DummyLogger:
        def info(self, _: Any) -> None:
            raise ValueError("fail")

    dummy_logger = DummyLogger()
    monkeypatch.setattr(audit_log, "_audit_logger", dummy_logger)

    with pytest.raises(RuntimeError):
        audit_log.emit_audit_log(
            action="reservation.deleted",
            initiator="user",
            reservation_id="r1",
        )
