"""
Metric vocabulary for the exporter.

Names here are the wire contract -- dashboards and alerts depend on them,
so don't rename without a very good reason. Every name gets the
``wireguard_`` namespace prefix when registered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, NamedTuple, Tuple

NAMESPACE = "wireguard"

INTERFACES_TOTAL = "interfaces_total"
SCRAPE_SUCCESS = "scrape_success"
SCRAPE_DURATION = "scrape_duration_milliseconds"
COLLECTOR_UP = "collector_up"
PEERS_TOTAL = "peers_total"
BYTES_TOTAL = "bytes_total"
PEER_BYTES_TOTAL = "peer_bytes_total"
HANDSHAKE_AGE = "duration_since_latest_handshake"
PEER_ENDPOINT = "peer_endpoint"

DIRECTION_RX = "rx"
DIRECTION_TX = "tx"


class MetricSpec(NamedTuple):
    help_text: str
    labelnames: Tuple[str, ...] = ()


METRICS: Dict[str, MetricSpec] = {
    INTERFACES_TOTAL: MetricSpec("Total number of interfaces"),
    SCRAPE_SUCCESS: MetricSpec("If the scrape was a success"),
    SCRAPE_DURATION: MetricSpec("Duration in milliseconds of the scrape"),
    COLLECTOR_UP: MetricSpec("1 while the collection loop is running, 0 once it has stopped"),
    PEERS_TOTAL: MetricSpec("Total number of peers per interfaces", ("interface",)),
    BYTES_TOTAL: MetricSpec(
        "Total number of bytes per direction per interface",
        ("interface", "direction"),
    ),
    PEER_BYTES_TOTAL: MetricSpec(
        "Total number of bytes per direction for a peer",
        ("interface", "peer", "alias", "direction"),
    ),
    HANDSHAKE_AGE: MetricSpec(
        "Duration since latest handshake for a peer",
        ("interface", "peer", "alias"),
    ),
    PEER_ENDPOINT: MetricSpec(
        "Peers info. static value",
        ("interface", "peer", "alias", "endpoint_ip"),
    ),
}


def full_name(name: str) -> str:
    return f"{NAMESPACE}_{name}"


@dataclass(frozen=True)
class MetricObservation:
    """A single gauge write: metric name, label values, value.

    ``labels`` holds values in the metric's declared label order, so
    (name, labels) identifies one series.
    """

    name: str
    labels: Tuple[str, ...]
    value: float
