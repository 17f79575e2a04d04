"""Rich tables for the one-shot `show` and `status` commands."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from prometheus_client.metrics_core import Metric
from prometheus_client.parser import text_string_to_metric_families
from prometheus_client.samples import Sample
from rich.markup import escape
from rich.table import Table

from wgexporter.aliases import AliasResolver
from wgexporter.metrics import (
    HANDSHAKE_AGE,
    INTERFACES_TOTAL,
    PEER_BYTES_TOTAL,
    PEER_ENDPOINT,
    SCRAPE_SUCCESS,
    full_name,
)
from wgexporter.snapshot import Snapshot
from wgexporter.translator import seconds_since_handshake

# Anything older than this and the tunnel is most likely down
STALE_HANDSHAKE_SECONDS = 180


@dataclass
class PeerRow:
    interface: str
    peer: str
    alias: str = ""
    endpoint_ip: str = ""
    rx_bytes: float = 0.0
    tx_bytes: float = 0.0
    handshake_age: float = 0.0  # 0 = never


def format_bytes(value: float) -> str:
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if abs(value) < 1024 or unit == "TiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


def format_age(seconds: float) -> str:
    if seconds <= 0:
        return "[dim]never[/dim]"
    if seconds < 60:
        text = f"{seconds:.0f}s ago"
    elif seconds < 3600:
        text = f"{seconds // 60:.0f}m {seconds % 60:.0f}s ago"
    else:
        text = f"{seconds // 3600:.0f}h {seconds % 3600 // 60:.0f}m ago"
    color = "red" if seconds > STALE_HANDSHAKE_SECONDS else "green"
    return f"[{color}]{text}[/{color}]"


def rows_from_snapshot(
    snapshot: Snapshot,
    resolver: AliasResolver,
    now: Optional[datetime] = None,
) -> List[PeerRow]:
    now = now or datetime.now(timezone.utc)
    rows = []
    for dev in snapshot.devices:
        for peer in dev.peers:
            rows.append(PeerRow(
                interface=dev.name,
                peer=peer.public_key,
                alias=resolver.resolve(peer.public_key),
                endpoint_ip=peer.endpoint_ip or "",
                rx_bytes=float(peer.receive_bytes),
                tx_bytes=float(peer.transmit_bytes),
                handshake_age=seconds_since_handshake(peer, now),
            ))
    return rows


def parse_metrics(text: str) -> Dict[str, Metric]:
    """Metric families of an exposition page, keyed by family name."""
    return {family.name: family for family in text_string_to_metric_families(text)}


def _samples(families: Dict[str, Metric], name: str) -> List[Sample]:
    family = families.get(name)
    return list(family.samples) if family else []


def _first_value(families: Dict[str, Metric], name: str) -> Optional[float]:
    samples = _samples(families, name)
    return samples[0].value if samples else None


def rows_from_metrics(families: Dict[str, Metric]) -> List[PeerRow]:
    """Rebuild per-peer rows from a scraped metrics page."""
    rows: Dict[Tuple[str, str], PeerRow] = {}

    def row_for(labels: Dict[str, str]) -> PeerRow:
        key = (labels.get("interface", ""), labels.get("peer", ""))
        if key not in rows:
            rows[key] = PeerRow(interface=key[0], peer=key[1], alias=labels.get("alias", ""))
        return rows[key]

    for sample in _samples(families, full_name(PEER_BYTES_TOTAL)):
        row = row_for(sample.labels)
        if sample.labels.get("direction") == "rx":
            row.rx_bytes = sample.value
        else:
            row.tx_bytes = sample.value

    for sample in _samples(families, full_name(HANDSHAKE_AGE)):
        row_for(sample.labels).handshake_age = sample.value

    for sample in _samples(families, full_name(PEER_ENDPOINT)):
        row_for(sample.labels).endpoint_ip = sample.labels.get("endpoint_ip", "")

    return sorted(rows.values(), key=lambda r: (r.interface, r.alias or r.peer))


def summary_from_metrics(families: Dict[str, Metric]) -> Tuple[Optional[float], Optional[float]]:
    """(scrape_success, interfaces_total) as the exporter last reported them."""
    return (
        _first_value(families, full_name(SCRAPE_SUCCESS)),
        _first_value(families, full_name(INTERFACES_TOTAL)),
    )


def build_peer_table(rows: List[PeerRow], title: str = "Peers") -> Table:
    table = Table(title=escape(title), show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Interface", style="dim")
    table.add_column("Peer")
    table.add_column("Alias", style="bold")
    table.add_column("Endpoint")
    table.add_column("Received", justify="right")
    table.add_column("Sent", justify="right")
    table.add_column("Latest handshake", justify="right")

    for row in rows:
        table.add_row(
            escape(row.interface),
            escape(row.peer[:12] + "..." if len(row.peer) > 15 else row.peer),
            escape(row.alias),
            escape(row.endpoint_ip) if row.endpoint_ip else "[dim](none)[/dim]",
            format_bytes(row.rx_bytes),
            format_bytes(row.tx_bytes),
            format_age(row.handshake_age),
        )
    return table
