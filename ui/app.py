import ctypes
import os
import sys

from textual.app import App

from config import DEFAULT_INTERFACE, __version__
from interfaces import get_default_interface
from ui.screens import DiagnosticScreen


def _is_admin() -> bool:
    """Check if the process has admin/root privileges."""
    try:
        return ctypes.windll.shell32.IsUserAnAdmin() != 0
    except AttributeError:
        # Unix fallback
        return os.geteuid() == 0


def _npcap_installed() -> bool:
    """Check if Npcap (or WinPcap) is installed on Windows."""
    if sys.platform != "win32":
        return True  # Not needed on non-Windows
    npcap_dir = os.path.join(os.environ.get("SystemRoot", r"C:\Windows"), "System32", "Npcap")
    wpcap_dll = os.path.join(os.environ.get("SystemRoot", r"C:\Windows"), "System32", "wpcap.dll")
    return os.path.isdir(npcap_dir) or os.path.isfile(wpcap_dll)


class NetDiagApp(App):
    """TCP connectivity diagnostics TUI."""

    TITLE = "netdiag"
    SUB_TITLE = f"TCP Handshake & Conntrack Diagnostics v{__version__}"

    CSS = """
    Screen {
        background: $background;
    }
    """

    def __init__(self):
        super().__init__()
        self.interface: str = ""

    def on_mount(self):
        # Pre-flight checks
        if not _is_admin():
            self.notify(
                "Not running as root/Administrator — packet capture will likely fail.\n"
                "Conntrack statistics are still collected.",
                severity="warning",
                timeout=8,
            )

        if sys.platform == "win32" and not _npcap_installed():
            self.notify(
                "Npcap not detected! Scapy requires Npcap on Windows.\n"
                "Download from https://npcap.com — install with WinPcap API compatibility.",
                severity="error",
                timeout=10,
            )

        if DEFAULT_INTERFACE:
            self.interface = DEFAULT_INTERFACE
        else:
            try:
                self.interface = get_default_interface()
            except RuntimeError as e:
                self.notify(str(e), severity="error", timeout=10)
                self.interface = ""

        self.push_screen(DiagnosticScreen(self.interface))
