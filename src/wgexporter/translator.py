"""
Turns one device snapshot into gauge observations.

Pure function of the snapshot, the alias table and the clock. No I/O,
no error path -- a malformed snapshot is the provider's problem.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from wgexporter.aliases import AliasResolver
from wgexporter.metrics import (
    BYTES_TOTAL,
    DIRECTION_RX,
    DIRECTION_TX,
    HANDSHAKE_AGE,
    INTERFACES_TOTAL,
    PEER_BYTES_TOTAL,
    PEER_ENDPOINT,
    PEERS_TOTAL,
    MetricObservation,
)
from wgexporter.snapshot import Peer, Snapshot

log = logging.getLogger(__name__)


def seconds_since_handshake(peer: Peer, now: datetime) -> float:
    """Age of the latest handshake in seconds.

    Returns 0 for a peer that never handshaked. That's a sentinel, not a
    real age, and a handshake that happened exactly ``now`` also reads 0.
    Clock skew between kernel and userspace is clamped to 0 as well.
    """
    if peer.last_handshake is None:
        return 0.0
    return max(0.0, (now - peer.last_handshake).total_seconds())


def translate(
    snapshot: Snapshot,
    resolver: AliasResolver,
    now: Optional[datetime] = None,
) -> List[MetricObservation]:
    if now is None:
        now = datetime.now(timezone.utc)

    out = [MetricObservation(INTERFACES_TOTAL, (), float(len(snapshot.devices)))]

    for dev in snapshot.devices:
        log.debug("Collecting metrics for interface: %s", dev.name)

        out.append(MetricObservation(PEERS_TOTAL, (dev.name,), float(len(dev.peers))))

        total_rx = sum(p.receive_bytes for p in dev.peers)
        total_tx = sum(p.transmit_bytes for p in dev.peers)
        out.append(MetricObservation(BYTES_TOTAL, (dev.name, DIRECTION_RX), float(total_rx)))
        out.append(MetricObservation(BYTES_TOTAL, (dev.name, DIRECTION_TX), float(total_tx)))

        for peer in dev.peers:
            key = peer.public_key
            alias = resolver.resolve(key)
            log.debug("  Peer: %s (alias: %s)", key, alias)

            out.append(MetricObservation(
                PEER_BYTES_TOTAL, (dev.name, key, alias, DIRECTION_RX), float(peer.receive_bytes),
            ))
            out.append(MetricObservation(
                PEER_BYTES_TOTAL, (dev.name, key, alias, DIRECTION_TX), float(peer.transmit_bytes),
            ))
            out.append(MetricObservation(
                HANDSHAKE_AGE, (dev.name, key, alias), seconds_since_handshake(peer, now),
            ))

            endpoint_ip = peer.endpoint_ip
            if endpoint_ip:
                out.append(MetricObservation(PEER_ENDPOINT, (dev.name, key, alias, endpoint_ip), 1.0))

    return out
