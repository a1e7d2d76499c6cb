from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ConnectionRecord:
    protocol: str = ""
    state: str = ""  # "ESTABLISHED", "SYN_SENT", "UNREPLIED", or anything else
    src: str = ""
    dst: str = ""
    sport: str = ""
    dport: str = ""
    timeout: int = 0


@dataclass
class ConntrackCounters:
    total: int = 0
    established: int = 0
    syn_sent: int = 0
    unreplied: int = 0
    other: int = 0


@dataclass
class HandshakeStats:
    syn_sent: int = 0
    syn_ack_received: int = 0
    rst_received: int = 0
    syn_ack_ratio: float = 0.0  # percent

    def finalize(self) -> "HandshakeStats":
        """Compute the SYN-ACK ratio from the final counters."""
        if self.syn_sent > 0:
            self.syn_ack_ratio = self.syn_ack_received / self.syn_sent * 100
        else:
            self.syn_ack_ratio = 0.0
        return self


@dataclass
class Interface:
    name: str
    description: str = ""
    addresses: list[str] = field(default_factory=list)


@dataclass
class DiagnosticResult:
    timestamp: datetime
    duration_secs: float
    packets_captured: int
    handshake: HandshakeStats
    conntrack: ConntrackCounters
    summary: str = ""
    recommendation: str = ""
    interfaces: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)
