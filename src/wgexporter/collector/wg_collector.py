"""
Provider for live WireGuard interfaces. Shells out to ``wg show all dump``
and maps the output into Device/Peer records.

Needs CAP_NET_ADMIN (usually root) to read peer state. Without it wg exits
non-zero and every scrape fails, but the loop keeps trying -- permissions
can be fixed without restarting the exporter.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import List, Optional

from wgexporter.collector.base import DeviceProvider
from wgexporter.collector.dump_parser import parse_dump
from wgexporter.errors import ProviderAcquisitionError, SnapshotFetchError
from wgexporter.snapshot import Device

log = logging.getLogger(__name__)


class WgCollector(DeviceProvider):

    def __init__(self, binary: str = "wg", timeout_seconds: Optional[float] = 10.0):
        self._binary = binary
        self._timeout = timeout_seconds
        self._path: Optional[str] = None

    def open(self):
        path = shutil.which(self._binary)
        if path is None:
            raise ProviderAcquisitionError(f"cannot find wireguard tool {self._binary!r} on PATH")
        self._path = path
        log.debug("Using wireguard tool at %s", path)

    def devices(self) -> List[Device]:
        if self._path is None:
            raise SnapshotFetchError("provider was not opened")

        try:
            result = subprocess.run(
                [self._path, "show", "all", "dump"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise SnapshotFetchError(f"wg show timed out after {self._timeout}s") from e
        except OSError as e:
            raise SnapshotFetchError(f"cannot run {self._path}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.strip() or f"exit status {result.returncode}"
            raise SnapshotFetchError(f"cannot list wireguard devices: {stderr}")

        return parse_dump(result.stdout)

    def name(self) -> str:
        return f"wg ({self._path or self._binary})"
