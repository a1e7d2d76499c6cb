from typing import Iterable

from models import ConnectionRecord, ConntrackCounters

# state string -> ConntrackCounters field; everything else is "other"
_STATE_BUCKETS = {
    "ESTABLISHED": "established",
    "SYN_SENT": "syn_sent",
    "UNREPLIED": "unreplied",
}


def count_states(records: Iterable[ConnectionRecord]) -> ConntrackCounters:
    """Fold conntrack records into per-state counters in a single pass."""
    counters = ConntrackCounters()
    for record in records:
        bucket = _STATE_BUCKETS.get(record.state, "other")
        setattr(counters, bucket, getattr(counters, bucket) + 1)
        counters.total += 1
    return counters


def merge_counters(a: ConntrackCounters, b: ConntrackCounters) -> ConntrackCounters:
    """Combine two partial folds, e.g. from tables read in chunks."""
    return ConntrackCounters(
        total=a.total + b.total,
        established=a.established + b.established,
        syn_sent=a.syn_sent + b.syn_sent,
        unreplied=a.unreplied + b.unreplied,
        other=a.other + b.other,
    )
