"""Public key -> human readable peer name lookup."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional


class AliasResolver:
    """Read-only alias table, built once at startup.

    The table is copied and frozen on construction so the poller thread
    and HTTP readers can share it without locking.
    """

    def __init__(self, table: Optional[Mapping[str, str]] = None):
        self._table = MappingProxyType(dict(table or {}))

    def resolve(self, public_key: str) -> str:
        """Configured alias for the key, or "" if there isn't one."""
        return self._table.get(public_key, "")

    @property
    def table(self) -> Mapping[str, str]:
        return self._table

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, public_key: object) -> bool:
        return public_key in self._table
