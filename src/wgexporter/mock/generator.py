"""
Mock WireGuard state generator.

Produces fake but plausible interfaces and peers so we can develop and
demo without a kernel module or root. Counters only grow, a few peers
never handshake and some have no endpoint, so every metric shape shows up.
"""

import base64
import random
from datetime import datetime, timedelta, timezone
from typing import List, Sequence

from wgexporter.snapshot import Device, Peer


class MockWireGuard:

    def __init__(
        self,
        seed: int = 42,
        interfaces: Sequence[str] = ("wg0",),
        peers_per_interface: int = 4,
    ):
        self._rng = random.Random(seed)
        self._tick = 0
        self._devices: List[Device] = []

        for i, name in enumerate(interfaces):
            dev = Device(name=name, public_key=self._key(), listen_port=51820 + i)
            for n in range(peers_per_interface):
                # Every fourth peer is configured but never connected
                connected = n % 4 != 3
                endpoint = f"198.51.100.{self._rng.randint(2, 254)}:{self._rng.randint(1024, 65535)}"
                dev.peers.append(Peer(
                    public_key=self._key(),
                    endpoint=endpoint if connected else None,
                    allowed_ips=[f"10.{i}.0.{n + 2}/32"],
                    persistent_keepalive=25 if n % 2 == 0 else 0,
                ))
            self._devices.append(dev)

    def _key(self) -> str:
        return base64.b64encode(bytes(self._rng.getrandbits(8) for _ in range(32))).decode()

    def devices(self) -> List[Device]:
        """Advance the simulation one step and return fresh copies."""
        self._tick += 1
        now = datetime.now(timezone.utc)

        out = []
        for dev in self._devices:
            for peer in dev.peers:
                if not peer.endpoint:
                    continue
                peer.receive_bytes += self._rng.randint(500, 50_000)
                peer.transmit_bytes += self._rng.randint(200, 20_000)
                # WireGuard rekeys roughly every two minutes under traffic
                if peer.last_handshake is None or self._rng.random() > 0.8:
                    peer.last_handshake = now - timedelta(seconds=self._rng.randint(1, 120))

            out.append(Device(
                name=dev.name,
                public_key=dev.public_key,
                listen_port=dev.listen_port,
                peers=[
                    Peer(
                        public_key=p.public_key,
                        receive_bytes=p.receive_bytes,
                        transmit_bytes=p.transmit_bytes,
                        last_handshake=p.last_handshake,
                        endpoint=p.endpoint,
                        allowed_ips=list(p.allowed_ips),
                        persistent_keepalive=p.persistent_keepalive,
                    )
                    for p in dev.peers
                ],
            ))
        return out
