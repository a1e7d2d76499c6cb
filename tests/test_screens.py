# tests/test_screens.py
import logging

from models import ConntrackCounters, HandshakeStats
from report import build_result
from ui import screens


def test_diagnose_returns_result(monkeypatch):
    expected = build_result(HandshakeStats(), ConntrackCounters(), 0, 5)
    calls = []

    def fake_run(interface, duration, bpf):
        calls.append((interface, duration, bpf))
        return expected

    monkeypatch.setattr(screens, "run_diagnostic", fake_run)
    result, error = screens._diagnose("eth0", 5, "tcp")
    assert result is expected
    assert error == ""
    assert calls == [("eth0", 5, "tcp")]


def test_diagnose_catches_unexpected_errors(monkeypatch, caplog):
    def boom(interface, duration, bpf):
        raise KeyError("queue exploded")

    monkeypatch.setattr(screens, "run_diagnostic", boom)
    with caplog.at_level(logging.ERROR, logger="ui.screens"):
        result, error = screens._diagnose("eth0", 5, None)
    assert result is None
    assert error.startswith("Diagnostic failed:")
    assert "queue exploded" in error
    assert "Diagnostic failed" in caplog.text


def test_diagnose_reports_invalid_duration():
    # the real runner rejects non-positive durations before capturing
    result, error = screens._diagnose("eth0", 0, None)
    assert result is None
    assert "duration must be > 0" in error
