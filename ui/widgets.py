from rich.text import Text
from textual.widgets import DataTable, RichLog

from config import LOW_SYNACK_RATIO
from models import ConntrackCounters, DiagnosticResult, HandshakeStats, Interface


class HandshakeTable(DataTable):
    """Table of SYN / SYN-ACK / RST counters from the packet capture."""

    def on_mount(self):
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns("Signal", "Count")

    def load_stats(self, stats: HandshakeStats):
        self.clear()
        ratio_style = "red" if stats.syn_sent and stats.syn_ack_ratio < LOW_SYNACK_RATIO else "green"
        self.add_row("SYN sent", str(stats.syn_sent), key="syn")
        self.add_row("SYN-ACK received", str(stats.syn_ack_received), key="synack")
        self.add_row("RST received", str(stats.rst_received), key="rst")
        self.add_row("SYN-ACK ratio", Text(_format_percent(stats.syn_ack_ratio), style=ratio_style), key="ratio")


class ConntrackTable(DataTable):
    """Table of conntrack entries per state."""

    def on_mount(self):
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns("State", "Entries", "Share")

    def load_counters(self, counters: ConntrackCounters):
        self.clear()
        for label, value in (
            ("ESTABLISHED", counters.established),
            ("SYN_SENT", counters.syn_sent),
            ("UNREPLIED", counters.unreplied),
            ("Other", counters.other),
        ):
            share = value / counters.total * 100 if counters.total else 0.0
            self.add_row(label, str(value), _format_percent(share), key=label)
        self.add_row(Text("Total", style="bold"), str(counters.total), "", key="total")


class InterfaceTable(DataTable):
    """Table of interfaces available for capture."""

    def on_mount(self):
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns("Name", "Description", "Addresses")

    def load_interfaces(self, interfaces: list[Interface], current: str = ""):
        self.clear()
        for iface in interfaces:
            name = Text(iface.name, style="bold") if iface.name == current else iface.name
            self.add_row(
                name,
                iface.description or "-",
                ", ".join(iface.addresses) or "-",
                key=iface.name,
            )


class ResultLog(RichLog):
    """Narrative part of a diagnostic: summary, recommendation, warnings."""

    def show_result(self, result: DiagnosticResult):
        self.clear()
        ts = result.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        ifaces = ", ".join(result.interfaces) or "default"
        self.write(f"[bold]Diagnostic[/]  {ts}  on {ifaces}  ({result.duration_secs:g}s)")
        self.write(f"  [cyan]Summary:[/] {result.summary}")
        self.write(f"  [yellow]Recommendation:[/] {result.recommendation}")
        for warning in result.warnings:
            self.write(f"  [bold red]Warning:[/] {warning}")


def _format_percent(value: float) -> str:
    return f"{value:.1f}%"
