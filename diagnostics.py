"""Runs one full connectivity diagnostic.

Packet capture and the conntrack table are independent evidence sources: if
either is unavailable the diagnostic still completes, with zero counters for
that source and a warning on the result.
"""

import logging

from aggregator import count_states
from config import CONNTRACK_PATH, DEFAULT_DURATION, DEFAULT_FILTER
from conntrack import read_conntrack
from handshake import analyze_handshake
from models import DiagnosticResult
from report import build_result
from sniffer import PacketCapture

logger = logging.getLogger(__name__)


def run_diagnostic(
    interface: str | None,
    duration: float = DEFAULT_DURATION,
    bpf: str | None = DEFAULT_FILTER,
    conntrack_path: str = CONNTRACK_PATH,
) -> DiagnosticResult:
    if duration <= 0:
        raise ValueError(f"duration must be > 0, got {duration}")

    warnings: list[str] = []

    capture = PacketCapture(interface=interface, bpf=bpf, duration=duration)
    capture.start()
    handshake = analyze_handshake(capture.packets())
    if capture.error:
        logger.warning(f"Packet capture unavailable: {capture.error}")
        warnings.append(f"Packet capture unavailable: {capture.error}")

    try:
        records = read_conntrack(conntrack_path)
    except OSError as e:
        logger.warning(f"Could not read conntrack table {conntrack_path}: {e}")
        warnings.append(f"Could not read conntrack table {conntrack_path}: {e}")
        records = []
    conntrack = count_states(records)

    result = build_result(
        handshake,
        conntrack,
        packets_captured=capture.packets_captured,
        duration_secs=duration,
        interfaces=[interface] if interface else [],
        warnings=warnings,
    )
    logger.info(f"Diagnostic complete: {result.summary}")
    return result
