"""
Parser for ``wg show all dump`` output. No external deps.

The dump is tab separated, one line per interface followed by one line
per peer of that interface:

    interface  private-key  public-key  listen-port  fwmark
    interface  public-key  preshared-key  endpoint  allowed-ips  latest-handshake  rx  tx  keepalive
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from wgexporter.errors import SnapshotFetchError
from wgexporter.snapshot import Device, Peer

_INTERFACE_FIELDS = 5
_PEER_FIELDS = 9

# wg prints this for any unset field
_NONE = "(none)"


def _optional(value: str) -> Optional[str]:
    return None if value in ("", _NONE) else value


def _handshake(value: str) -> Optional[datetime]:
    seconds = int(value)
    if seconds == 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _keepalive(value: str) -> int:
    return 0 if value == "off" else int(value)


def parse_peer(fields: List[str]) -> Peer:
    allowed = _optional(fields[4])
    return Peer(
        public_key=fields[1],
        endpoint=_optional(fields[3]),
        allowed_ips=allowed.split(",") if allowed else [],
        last_handshake=_handshake(fields[5]),
        receive_bytes=int(fields[6]),
        transmit_bytes=int(fields[7]),
        persistent_keepalive=_keepalive(fields[8]),
    )


def parse_dump(text: str) -> List[Device]:
    """Returns devices in the order wg listed them.

    Raises SnapshotFetchError on lines that don't look like dump output,
    since that means the tool and this parser disagree about the format.
    """
    devices: Dict[str, Device] = {}

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue

        fields = line.split("\t")
        try:
            if len(fields) == _INTERFACE_FIELDS:
                listen_port = int(fields[3]) if fields[3].isdigit() else 0
                devices[fields[0]] = Device(
                    name=fields[0],
                    public_key=_optional(fields[2]) or "",
                    listen_port=listen_port,
                )
            elif len(fields) == _PEER_FIELDS:
                dev = devices.get(fields[0])
                if dev is None:
                    # peer line before its interface line, shouldn't happen
                    dev = devices[fields[0]] = Device(name=fields[0])
                dev.peers.append(parse_peer(fields))
            else:
                raise SnapshotFetchError(
                    f"line {lineno}: expected {_INTERFACE_FIELDS} or {_PEER_FIELDS} fields, got {len(fields)}"
                )
        except ValueError as e:
            raise SnapshotFetchError(f"line {lineno}: {e}") from e

    return list(devices.values())
