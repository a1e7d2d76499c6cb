import logging
import threading
from queue import Queue
from typing import Iterator

from scapy.all import sniff as scapy_sniff

from config import DEFAULT_DURATION, QUEUE_MAX

logger = logging.getLogger(__name__)

# Queued after the last packet of a capture
_END_OF_STREAM = object()

PERMISSION_HINT = (
    "packet capture usually requires root privileges. Run with sudo or grant "
    "the interpreter cap_net_raw,cap_net_admin"
)


def _describe_error(interface: str | None, exc: Exception) -> str:
    msg = str(exc) or exc.__class__.__name__
    if isinstance(exc, PermissionError) or "Operation not permitted" in msg or "permission" in msg.lower():
        return f"permission denied while opening interface {interface or 'default'!r}: {PERMISSION_HINT}"
    return f"failed to capture on {interface or 'default'!r}: {msg}"


class PacketCapture:
    """Captures packets in a background thread and hands them to one consumer.

    The capture ends when the duration elapses, stop() is called, or the
    interface fails; in every case packets() then runs out.
    """

    def __init__(
        self,
        interface: str | None = None,
        bpf: str | None = None,
        duration: float = DEFAULT_DURATION,
        queue_max: int = QUEUE_MAX,
    ):
        self.interface = interface
        self.bpf = bpf
        self.duration = duration
        self._queue: Queue = Queue(maxsize=queue_max)
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._packets_captured = 0
        self.running = False
        self.error: str = ""

    @property
    def packets_captured(self) -> int:
        with self._lock:
            return self._packets_captured

    def start(self):
        """Start capturing on the configured interface."""
        if self.running:
            raise RuntimeError("capture already running")

        self._stop_event.clear()
        self.error = ""
        self.running = True
        logger.info(
            f"Capturing on {self.interface or 'default interface'} for {self.duration}s"
            f"{f' (filter: {self.bpf})' if self.bpf else ''}"
        )

        self._thread = threading.Thread(
            target=self._capture_loop,
            daemon=True,
            name=f"capture-{self.interface or 'default'}",
        )
        self._thread.start()

    def stop(self):
        """Ask the capture thread to finish after the next packet."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=3)

    def _capture_loop(self):
        try:
            scapy_sniff(
                iface=self.interface,
                filter=self.bpf,
                prn=self._process_packet,
                stop_filter=lambda _: self._stop_event.is_set(),
                timeout=self.duration,
                store=False,
            )
        except Exception as e:
            self.error = _describe_error(self.interface, e)
            logger.error(f"Capture error: {self.error}")
        finally:
            self.running = False
            self._queue.put(_END_OF_STREAM)
            logger.info(f"Capture finished: {self.packets_captured} packet(s)")

    def _process_packet(self, pkt):
        with self._lock:
            self._packets_captured += 1
        self._queue.put(pkt)

    def packets(self) -> Iterator:
        """Yield captured packets in arrival order until the capture ends.

        Only one consumer may iterate; call start() first.
        """
        while True:
            item = self._queue.get()
            if item is _END_OF_STREAM:
                return
            yield item
