"""
Exporter configuration and the small parsers behind the CLI flags.

Values are fixed once the exporter starts -- ExporterConfig is frozen and
the alias table is wrapped read-only.
"""

from __future__ import annotations

import logging
import math
import re
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from wgexporter.errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_LISTEN_ADDRESS = ":9586"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_INTERVAL = "15s"
DEFAULT_SCRAPE_TIMEOUT = "10s"

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

# "1h30m", "15s", "500ms", "1.5m"
_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")


@dataclass(frozen=True)
class ExporterConfig:
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    metrics_path: str = DEFAULT_METRICS_PATH
    interval: float = 15.0          # seconds between scrapes
    scrape_timeout: float = 10.0    # deadline for one device query
    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    verbose: bool = False
    wg_binary: str = "wg"
    mock: bool = False

    def __post_init__(self):
        if not isinstance(self.aliases, MappingProxyType):
            object.__setattr__(self, "aliases", MappingProxyType(dict(self.aliases)))
        if not self.metrics_path.startswith("/"):
            raise ConfigError(f"metrics path must start with '/': {self.metrics_path!r}")
        if not (math.isfinite(self.interval) and 0 < self.interval <= threading.TIMEOUT_MAX):
            raise ConfigError("interval must be a positive, finite duration")
        if not (math.isfinite(self.scrape_timeout) and 0 <= self.scrape_timeout <= threading.TIMEOUT_MAX):
            raise ConfigError("scrape timeout must be a finite, non-negative duration")

    @property
    def fetch_timeout(self) -> Optional[float]:
        """Deadline for one device query, None when disabled with 0."""
        return self.scrape_timeout or None

    @property
    def host_port(self) -> Tuple[str, int]:
        return parse_listen_address(self.listen_address)


def parse_duration(text: str) -> float:
    """Parse a Go-style duration ("15s", "1m30s", "500ms") into seconds.

    A bare number is taken as seconds.
    """
    text = text.strip()
    if not text:
        raise ConfigError("empty duration")

    try:
        total = float(text)
    except ValueError:
        total = _parse_units(text)

    if not math.isfinite(total):
        raise ConfigError(f"duration must be finite: {text!r}")
    if total > threading.TIMEOUT_MAX:
        raise ConfigError(f"duration too long: {text!r}")
    return total


def _parse_units(text: str) -> float:
    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise ConfigError(f"invalid duration: {text!r}")
    return total


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split "host:port" / ":port" / "[::]:port" into (host, port).

    An empty host binds every IPv4 interface.
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address needs a port: {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"invalid port in listen address: {address!r}") from None
    if not 0 <= port <= 65535:
        raise ConfigError(f"port out of range in listen address: {address!r}")
    return host, port


def parse_aliases(entries: Iterable[str]) -> Dict[str, str]:
    """Build the alias table from "publicKey:alias" entries.

    Each entry may itself be a comma-separated list. Malformed pairs are
    skipped with a warning; a key given twice keeps the last alias.
    """
    aliases: Dict[str, str] = {}
    for entry in entries:
        if not entry:
            continue
        for pair in entry.split(","):
            if not pair.strip():
                continue
            parts = pair.split(":")
            if len(parts) != 2:
                log.warning("Ignoring malformed alias entry %r (want publicKey:alias)", pair)
                continue
            key, alias = parts[0].strip(), parts[1].strip()
            if key in aliases and aliases[key] != alias:
                log.warning("Duplicate alias for %s: %r replaces %r", key, alias, aliases[key])
            aliases[key] = alias
    return aliases
