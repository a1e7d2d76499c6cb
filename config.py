"""Defaults for netdiag, overridable through NETDIAG_* environment variables."""

import logging
import os

logger = logging.getLogger(__name__)

__version__ = "0.3.0"

# Max decoded packets buffered between the capture thread and the classifier
QUEUE_MAX = 10000

# Below this SYN-ACK ratio (percent) the report flags possible packet loss
LOW_SYNACK_RATIO = 80.0

# Share (percent) of unreplied conntrack entries worth a recommendation
HIGH_UNREPLIED_SHARE = 20.0


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number. Using default {default}.")
        return default
    if value <= 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be > 0. Using default {default}.")
        return default
    return value


CONNTRACK_PATH = os.environ.get("NETDIAG_CONNTRACK_PATH", "/proc/net/nf_conntrack")
DEFAULT_DURATION = _env_float("NETDIAG_DURATION", 30.0)
DEFAULT_FILTER = os.environ.get("NETDIAG_FILTER") or None
DEFAULT_INTERFACE = os.environ.get("NETDIAG_INTERFACE") or None
LOG_FILE = os.environ.get("NETDIAG_LOG_FILE", "netdiag.log")
LOG_LEVEL = os.environ.get("NETDIAG_LOG_LEVEL", "INFO").upper()
