import logging
from typing import Iterable

from scapy.all import TCP

from models import HandshakeStats

logger = logging.getLogger(__name__)

# TCP control flag bits
SYN = 0x02
RST = 0x04
ACK = 0x10


def _tcp_flags(pkt) -> int | None:
    """Return the TCP flag bits of pkt, or None if it carries no TCP segment."""
    try:
        if not pkt.haslayer(TCP):
            return None
        return int(pkt[TCP].flags)
    except (AttributeError, IndexError, TypeError, ValueError):
        # not a decoded scapy packet, or a truncated TCP header
        return None


class HandshakeClassifier:
    """Counts handshake signals (SYN, SYN-ACK, RST) in a packet stream.

    The classifier is the only writer of its HandshakeStats. Packets are
    handled strictly in the order the iterable yields them.
    """

    def __init__(self):
        self.stats = HandshakeStats()
        self.packets_seen = 0
        self._finalized = False

    def process(self, pkt) -> None:
        self.packets_seen += 1
        flags = _tcp_flags(pkt)
        if flags is None:
            return

        syn = bool(flags & SYN)
        ack = bool(flags & ACK)
        rst = bool(flags & RST)

        if syn and ack:
            self.stats.syn_ack_received += 1
        elif syn and rst:
            return
        elif syn:
            self.stats.syn_sent += 1
        elif rst:
            self.stats.rst_received += 1

    def run(self, packets: Iterable) -> HandshakeStats:
        """Consume packets until the stream ends, then return finalized stats."""
        if self._finalized:
            raise RuntimeError("HandshakeClassifier already finalized; create a new one per capture")
        for pkt in packets:
            self.process(pkt)
        self._finalized = True
        self.stats.finalize()
        logger.info(
            f"Classified {self.packets_seen} packet(s): {self.stats.syn_sent} SYN, "
            f"{self.stats.syn_ack_received} SYN-ACK, {self.stats.rst_received} RST"
        )
        return self.stats


def analyze_handshake(packets: Iterable) -> HandshakeStats:
    """Classify a packet stream with a fresh classifier."""
    return HandshakeClassifier().run(packets)
