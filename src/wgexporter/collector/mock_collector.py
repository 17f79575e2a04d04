"""
Provider that reads from the simulated WireGuard state.
Used for local development on machines without WireGuard.
"""

from typing import List

from wgexporter.collector.base import DeviceProvider
from wgexporter.mock.generator import MockWireGuard
from wgexporter.snapshot import Device


class MockCollector(DeviceProvider):
    """Wraps the mock generator as a standard provider."""

    def __init__(self, seed: int = 42):
        self._wg = MockWireGuard(seed=seed, interfaces=("wg0", "wg1"))

    def devices(self) -> List[Device]:
        return self._wg.devices()

    def name(self) -> str:
        return "Mock WireGuard (wg0, wg1)"
