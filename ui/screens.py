import logging

from rich.markup import escape
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Static

from config import DEFAULT_DURATION, DEFAULT_FILTER
from diagnostics import run_diagnostic
from interfaces import list_interfaces
from models import DiagnosticResult, Interface
from ui.widgets import ConntrackTable, HandshakeTable, InterfaceTable, ResultLog

logger = logging.getLogger(__name__)


def _diagnose(interface: str | None, duration: float, bpf: str | None) -> tuple[DiagnosticResult | None, str]:
    """Run one diagnostic; returns (result, "") or (None, error message)."""
    try:
        return run_diagnostic(interface, duration=duration, bpf=bpf), ""
    except Exception as e:
        logger.exception("Diagnostic failed")
        return None, f"Diagnostic failed: {e}"


class DiagnosticScreen(Screen):
    """Main screen: runs a diagnostic and shows handshake and conntrack counters."""

    BINDINGS = [
        Binding("d", "diagnose", "Run Diagnostic"),
        Binding("i", "interfaces", "Interfaces"),
        Binding("q", "app.quit", "Quit"),
    ]

    CSS = """
    #diag-header {
        dock: top;
        height: 3;
        padding: 0 2;
        background: $primary-background;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
    }
    #tables {
        height: 1fr;
    }
    HandshakeTable {
        width: 1fr;
    }
    ConntrackTable {
        width: 1fr;
    }
    ResultLog {
        height: 10;
    }
    """

    def __init__(self, interface: str):
        super().__init__()
        self.interface = interface
        self.duration = DEFAULT_DURATION
        self.bpf = DEFAULT_FILTER

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static(self._header_text(), id="diag-header")
        with Vertical():
            with Horizontal(id="tables"):
                yield HandshakeTable(id="handshake-table")
                yield ConntrackTable(id="conntrack-table")
            yield ResultLog(id="result-log", highlight=True, markup=True, wrap=True)
        yield Static("Ready — press [b]d[/b] to run a diagnostic", id="status-bar")
        yield Footer()

    def _header_text(self) -> str:
        return (
            f"[b]{self.interface or 'default interface'}[/b]  "
            f"Duration: {self.duration:g}s  "
            f"Filter: {self.bpf or '-'}"
        )

    def set_interface(self, interface: str):
        self.interface = interface
        self.query_one("#diag-header", Static).update(self._header_text())

    def action_diagnose(self):
        self._run_diagnostic()

    @work(thread=True, exclusive=True, group="diagnostic")
    def _run_diagnostic(self):
        status = self.query_one("#status-bar", Static)
        handshake_table = self.query_one("#handshake-table", HandshakeTable)
        conntrack_table = self.query_one("#conntrack-table", ConntrackTable)
        result_log = self.query_one("#result-log", ResultLog)

        self.app.call_from_thread(
            status.update,
            f"Capturing on {self.interface or 'default interface'} for {self.duration:g}s ...",
        )
        result, error = _diagnose(self.interface or None, self.duration, self.bpf)
        if result is None:
            self.app.call_from_thread(self.app.notify, escape(error), severity="error", timeout=10)
            self.app.call_from_thread(status.update, escape(error))
            return
        self.app.call_from_thread(handshake_table.load_stats, result.handshake)
        self.app.call_from_thread(conntrack_table.load_counters, result.conntrack)
        self.app.call_from_thread(result_log.show_result, result)

        if result.degraded:
            self.app.call_from_thread(
                self.app.notify,
                "\n".join(result.warnings),
                severity="warning",
                timeout=10,
            )
        self.app.call_from_thread(
            status.update,
            f"Diagnostic complete — {result.packets_captured} packet(s), "
            f"{result.conntrack.total} conntrack entries",
        )

    def action_interfaces(self):
        self.app.push_screen(InterfaceListScreen(self.interface), self._on_interface_chosen)

    def _on_interface_chosen(self, interface: str | None):
        if interface:
            self.set_interface(interface)


class InterfaceListScreen(Screen):
    """Lists capture interfaces; selecting one returns it to the caller."""

    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("escape", "go_back", "Back"),
    ]

    CSS = """
    #iface-status {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $surface;
        color: $text-muted;
    }
    InterfaceTable {
        height: 1fr;
    }
    """

    def __init__(self, current: str = ""):
        super().__init__()
        self.current = current
        self.interfaces: list[Interface] = []

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield InterfaceTable(id="iface-table")
        yield Static("Select an interface with [b]Enter[/b] | [b]Esc[/b] back", id="iface-status")
        yield Footer()

    def on_mount(self):
        self.action_refresh()

    def action_refresh(self):
        self._load_interfaces()

    @work(thread=True, exclusive=True, group="interfaces")
    def _load_interfaces(self):
        table = self.query_one("#iface-table", InterfaceTable)
        status = self.query_one("#iface-status", Static)
        self.interfaces = list_interfaces()
        self.app.call_from_thread(table.load_interfaces, self.interfaces, self.current)
        self.app.call_from_thread(status.update, f"{len(self.interfaces)} interface(s)")

    def on_data_table_row_selected(self, event: DataTable.RowSelected):
        self.dismiss(str(event.row_key.value))

    def action_go_back(self):
        self.dismiss(None)
