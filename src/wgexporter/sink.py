"""
Metric sink backed by prometheus_client gauges.

Owns its own CollectorRegistry, so several exporters (or tests) can live in
one process without fighting over the global default registry.

Gauges alone never forget a label set: a peer removed from the interface
would keep reporting its last value forever. The sink remembers which
series each successful cycle wrote and removes the ones the next cycle
didn't.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Set, Tuple

from prometheus_client import CollectorRegistry, Gauge

from wgexporter.metrics import (
    COLLECTOR_UP,
    METRICS,
    NAMESPACE,
    SCRAPE_DURATION,
    SCRAPE_SUCCESS,
    MetricObservation,
)

log = logging.getLogger(__name__)


class MetricSink:

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = NAMESPACE):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._namespace = namespace
        self._gauges: Dict[str, Gauge] = {
            name: Gauge(
                name,
                spec.help_text,
                labelnames=spec.labelnames,
                namespace=namespace,
                registry=self.registry,
            )
            for name, spec in METRICS.items()
        }
        # Series written by the last successful cycle, per labeled metric
        self._written: Dict[str, Set[Tuple[str, ...]]] = {
            name: set() for name, spec in METRICS.items() if spec.labelnames
        }

    def write(self, observations: Iterable[MetricObservation]) -> int:
        """Apply one cycle's observations and retract series it didn't touch.

        Returns how many stale series were removed.
        """
        current: Dict[str, Set[Tuple[str, ...]]] = {name: set() for name in self._written}

        for obs in observations:
            gauge = self._gauges[obs.name]
            if obs.labels:
                gauge.labels(*obs.labels).set(obs.value)
                current[obs.name].add(obs.labels)
            else:
                gauge.set(obs.value)

        removed = 0
        for name, previous in self._written.items():
            for labels in previous - current[name]:
                self._gauges[name].remove(*labels)
                removed += 1

        if removed:
            log.debug("Retracted %d stale series", removed)

        self._written = current
        return removed

    def set_scrape_success(self, ok: bool):
        self._gauges[SCRAPE_SUCCESS].set(1 if ok else 0)

    def set_scrape_duration(self, milliseconds: float):
        self._gauges[SCRAPE_DURATION].set(milliseconds)

    def set_up(self, up: bool):
        self._gauges[COLLECTOR_UP].set(1 if up else 0)

    def value(self, name: str, labels: Tuple[str, ...] = ()) -> Optional[float]:
        """Current value of one series, or None if it isn't there.

        Reads through the registry, so this sees exactly what a scrape would.
        """
        spec = METRICS[name]
        return self.registry.get_sample_value(
            f"{self._namespace}_{name}", dict(zip(spec.labelnames, labels)),
        )

    def series(self, name: str) -> Set[Tuple[str, ...]]:
        """Label sets currently tracked for a labeled metric."""
        return set(self._written.get(name, ()))
