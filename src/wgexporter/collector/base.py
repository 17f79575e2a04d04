"""
Base provider interface.

A provider is anything that can report WireGuard device state on demand.
This keeps the poller and translator decoupled from where the data
actually comes from (the wg tool, a simulation, netlink later).
"""

from abc import ABC, abstractmethod
from typing import List

from wgexporter.snapshot import Device


class DeviceProvider(ABC):
    """Interface for all device-state sources."""

    def open(self):
        """Acquire whatever handle the provider needs.

        Raise ProviderAcquisitionError if the source can't be reached at all.
        """

    @abstractmethod
    def devices(self) -> List[Device]:
        """Fetch the current state of every interface.

        Raise SnapshotFetchError when this one query fails.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        pass
