# tests/test_diagnostics.py
import logging
from pathlib import Path

import pytest
from scapy.all import Ether, IP, TCP

import diagnostics
from diagnostics import run_diagnostic
from models import ConntrackCounters, HandshakeStats

CONNTRACK_TEXT = (
    "ipv4 2 tcp 6 431999 ESTABLISHED src=10.0.0.5 dst=1.1.1.1 sport=40000 dport=443 "
    "src=1.1.1.1 dst=10.0.0.5 sport=443 dport=40000 [ASSURED] mark=0 use=2\n"
    "ipv4 2 tcp 6 431999 ESTABLISHED src=10.0.0.5 dst=1.0.0.1 sport=40001 dport=443 "
    "src=1.0.0.1 dst=10.0.0.5 sport=443 dport=40001 [ASSURED] mark=0 use=2\n"
    "ipv4 2 tcp 6 30 SYN_SENT src=10.0.0.5 dst=8.8.8.8 sport=40002 dport=53 [UNREPLIED] "
    "src=8.8.8.8 dst=10.0.0.5 sport=53 dport=40002 mark=0 use=1\n"
)


class FakeCapture:
    """Stands in for PacketCapture with a fixed packet list."""

    packets_to_deliver: list = []
    error_to_report: str = ""
    instances: list = []

    def __init__(self, interface=None, bpf=None, duration=30.0):
        self.interface = interface
        self.bpf = bpf
        self.duration = duration
        self.error = ""
        self.started = False
        FakeCapture.instances.append(self)

    @property
    def packets_captured(self):
        return 0 if self.error else len(self.packets_to_deliver)

    def start(self):
        self.started = True
        self.error = self.error_to_report

    def packets(self):
        if self.error:
            return
        yield from self.packets_to_deliver


def tcp_packet(flags: str):
    return Ether() / IP(src="10.0.0.5", dst="1.1.1.1") / TCP(sport=40000, dport=443, flags=flags)


@pytest.fixture
def fake_capture(monkeypatch):
    FakeCapture.packets_to_deliver = []
    FakeCapture.error_to_report = ""
    FakeCapture.instances = []
    monkeypatch.setattr(diagnostics, "PacketCapture", FakeCapture)
    return FakeCapture


@pytest.fixture
def conntrack_file(tmp_path: Path) -> str:
    path = tmp_path / "nf_conntrack"
    path.write_text(CONNTRACK_TEXT, encoding="utf-8")
    return str(path)


def test_run_diagnostic_combines_both_sources(fake_capture, conntrack_file):
    fake_capture.packets_to_deliver = [tcp_packet("S"), tcp_packet("SA"), tcp_packet("S"), tcp_packet("R")]
    result = run_diagnostic("eth0", duration=5, bpf="tcp", conntrack_path=conntrack_file)

    capture = fake_capture.instances[0]
    assert capture.started
    assert (capture.interface, capture.bpf, capture.duration) == ("eth0", "tcp", 5)

    assert result.handshake == HandshakeStats(syn_sent=2, syn_ack_received=1, rst_received=1, syn_ack_ratio=50.0)
    assert result.conntrack == ConntrackCounters(total=3, established=2, syn_sent=1, unreplied=0, other=0)
    assert result.packets_captured == 4
    assert result.duration_secs == 5
    assert result.interfaces == ["eth0"]
    assert result.warnings == []
    assert result.summary == "Captured 4 packets, 2 SYN sent, 50.0% SYN-ACK ratio, 3 conntrack entries"
    assert "packet loss" in result.recommendation


def test_run_diagnostic_missing_conntrack_degrades(fake_capture, tmp_path, caplog):
    fake_capture.packets_to_deliver = [tcp_packet("S"), tcp_packet("SA")]
    missing = str(tmp_path / "absent")
    with caplog.at_level(logging.WARNING, logger="diagnostics"):
        result = run_diagnostic("eth0", duration=5, conntrack_path=missing)

    assert result.conntrack == ConntrackCounters()
    assert result.handshake.syn_ack_ratio == pytest.approx(100.0)
    assert len(result.warnings) == 1
    assert "Could not read conntrack table" in result.warnings[0]
    assert result.degraded
    assert "degraded" in result.summary
    assert "Could not read conntrack table" in caplog.text


def test_run_diagnostic_capture_failure_degrades(fake_capture, conntrack_file):
    fake_capture.packets_to_deliver = [tcp_packet("S")]
    fake_capture.error_to_report = "permission denied while opening interface 'eth0'"
    result = run_diagnostic("eth0", duration=5, conntrack_path=conntrack_file)

    assert result.handshake == HandshakeStats()
    assert result.packets_captured == 0
    assert result.conntrack.total == 3
    assert result.warnings == ["Packet capture unavailable: permission denied while opening interface 'eth0'"]


def test_run_diagnostic_both_sources_unavailable(fake_capture, tmp_path):
    fake_capture.error_to_report = "failed to capture on 'eth0': No such device"
    result = run_diagnostic("eth0", duration=5, conntrack_path=str(tmp_path / "absent"))
    assert len(result.warnings) == 2
    assert result.handshake == HandshakeStats()
    assert result.conntrack == ConntrackCounters()
    assert "2 evidence source(s) unavailable" in result.summary


def test_run_diagnostic_default_interface(fake_capture, conntrack_file):
    result = run_diagnostic(None, duration=1, conntrack_path=conntrack_file)
    assert fake_capture.instances[0].interface is None
    assert result.interfaces == []


@pytest.mark.parametrize("duration", [0, -5])
def test_run_diagnostic_rejects_non_positive_duration(fake_capture, duration):
    with pytest.raises(ValueError):
        run_diagnostic("eth0", duration=duration)
    assert fake_capture.instances == []
