"""
Device state as reported by WireGuard, one snapshot per scrape.

Nothing here is kept between cycles -- the provider builds a fresh
Snapshot every time and the translator turns it into gauges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


@dataclass
class Peer:
    """One remote endpoint of an interface, identified by its public key."""

    public_key: str
    receive_bytes: int = 0
    transmit_bytes: int = 0

    # None means the peer never completed a handshake
    last_handshake: Optional[datetime] = None

    # "host:port" as wg prints it, None when the peer has no endpoint yet
    endpoint: Optional[str] = None

    allowed_ips: List[str] = field(default_factory=list)
    persistent_keepalive: int = 0

    @property
    def endpoint_ip(self) -> Optional[str]:
        """Host part of the endpoint, with IPv6 brackets stripped."""
        if not self.endpoint:
            return None
        host, sep, _port = self.endpoint.rpartition(":")
        if not sep:
            host = self.endpoint
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        return host


@dataclass
class Device:
    """One WireGuard interface."""

    name: str
    peers: List[Peer] = field(default_factory=list)
    public_key: str = ""
    listen_port: int = 0


@dataclass
class Snapshot:
    """Everything the provider returned for a single scrape."""

    devices: List[Device] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def peer_count(self) -> int:
        return sum(len(dev.peers) for dev in self.devices)
