from datetime import datetime

from config import HIGH_UNREPLIED_SHARE, LOW_SYNACK_RATIO
from models import ConntrackCounters, DiagnosticResult, HandshakeStats


def summarize(
    handshake: HandshakeStats,
    conntrack: ConntrackCounters,
    packets_captured: int,
    warnings: list[str] | None = None,
) -> str:
    summary = (
        f"Captured {packets_captured} packets, {handshake.syn_sent} SYN sent, "
        f"{handshake.syn_ack_ratio:.1f}% SYN-ACK ratio, {conntrack.total} conntrack entries"
    )
    if warnings:
        summary += f" (degraded: {len(warnings)} evidence source(s) unavailable)"
    return summary


def recommend(handshake: HandshakeStats, conntrack: ConntrackCounters) -> str:
    notes = []
    if handshake.syn_sent == 0:
        notes.append("No outgoing SYNs observed; capture longer or widen the filter.")
    elif handshake.syn_ack_ratio < LOW_SYNACK_RATIO:
        notes.append(
            f"SYN-ACK ratio is {handshake.syn_ack_ratio:.1f}%; "
            "low values may indicate packet loss or network issues."
        )
    if handshake.rst_received and handshake.rst_received > handshake.syn_ack_received:
        notes.append(
            f"{handshake.rst_received} resets vs {handshake.syn_ack_received} SYN-ACKs; "
            "check for closed ports or middleboxes rejecting connections."
        )
    if conntrack.total:
        unreplied_share = conntrack.unreplied / conntrack.total * 100
        if unreplied_share >= HIGH_UNREPLIED_SHARE:
            notes.append(
                f"{unreplied_share:.1f}% of tracked connections are unreplied; "
                "check upstream reachability and NAT/firewall rules."
            )
    if not notes:
        return "No action needed."
    return " ".join(notes)


def build_result(
    handshake: HandshakeStats,
    conntrack: ConntrackCounters,
    packets_captured: int,
    duration_secs: float,
    interfaces: list[str] | None = None,
    warnings: list[str] | None = None,
    timestamp: datetime | None = None,
) -> DiagnosticResult:
    """Compose finalized counters into a DiagnosticResult."""
    warnings = list(warnings or [])
    return DiagnosticResult(
        timestamp=timestamp or datetime.now(),
        duration_secs=duration_secs,
        packets_captured=packets_captured,
        handshake=handshake,
        conntrack=conntrack,
        summary=summarize(handshake, conntrack, packets_captured, warnings),
        recommendation=recommend(handshake, conntrack),
        interfaces=list(interfaces or []),
        warnings=warnings,
    )
