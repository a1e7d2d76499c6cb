"""Parser for the kernel connection-tracking table.

A conntrack line looks like:

    ipv4  2 tcp  6 431999 ESTABLISHED src=10.0.0.5 dst=93.184.216.34 sport=54321 dport=443
        src=93.184.216.34 dst=10.0.0.5 sport=443 dport=54321 [ASSURED] mark=0 use=2

The first six tokens are positional (family, l3 number, protocol, l4 number,
timeout, state); the rest are key=value pairs covering both the original and
the reply tuple, mixed with bracketed status flags.
"""

import logging
import re
from typing import Iterator

from config import CONNTRACK_PATH
from models import ConnectionRecord

logger = logging.getLogger(__name__)

# Tokens before the key=value section
POSITIONAL_FIELDS = 6
PROTOCOL_INDEX = 2
STATE_INDEX = 5

# key= token -> ConnectionRecord field
_KEY_FIELDS = {
    "src": "src",
    "dst": "dst",
    "sport": "sport",
    "dport": "dport",
    "tcp_state": "state",
}

_LEADING_INT = re.compile(r"[+-]?\d+")


def _parse_timeout(value: str) -> int:
    """Leading integer of value, 0 if there is none ('120abc' -> 120)."""
    match = _LEADING_INT.match(value)
    return int(match.group()) if match else 0


def parse_line(line: str) -> ConnectionRecord:
    """Parse one conntrack line into a ConnectionRecord.

    Keys that appear twice (original and reply tuple) keep the value of the
    last occurrence. Malformed input never raises; missing pieces are left
    empty.
    """
    tokens = line.split()

    protocol = ""
    positional_state = ""
    if len(tokens) >= POSITIONAL_FIELDS:
        protocol = tokens[PROTOCOL_INDEX]
        positional_state = tokens[STATE_INDEX]

    fields = {"state": "", "src": "", "dst": "", "sport": "", "dport": ""}
    timeout = 0
    for token in tokens[POSITIONAL_FIELDS:]:
        key, sep, value = token.partition("=")
        if not sep:
            continue  # [ASSURED], [UNREPLIED], ...
        if key in _KEY_FIELDS:
            fields[_KEY_FIELDS[key]] = value
        elif key == "timeout":
            timeout = _parse_timeout(value)

    if not fields["state"]:
        fields["state"] = positional_state
    if not fields["state"] and timeout > 0:
        fields["state"] = "UNREPLIED"

    return ConnectionRecord(protocol=protocol, timeout=timeout, **fields)


def parse_table(text: str) -> Iterator[ConnectionRecord]:
    """Yield one ConnectionRecord per non-blank line of the table text."""
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            record = parse_line(line)
        except Exception as e:
            logger.warning(f"Dropping conntrack line {lineno}: {e}")
            continue
        if not record.protocol:
            logger.debug(f"Short conntrack line {lineno}: {line!r}")
        yield record


def read_conntrack(path: str = CONNTRACK_PATH) -> list[ConnectionRecord]:
    """Read and parse the connection-tracking table at path.

    Raises OSError when the table cannot be opened or read; malformed lines
    inside a readable table are skipped instead.
    """
    logger.debug(f"Reading conntrack table from {path}")
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        text = f.read()
    records = list(parse_table(text))
    logger.info(f"Parsed {len(records)} conntrack entries from {path}")
    return records
