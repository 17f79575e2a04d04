"""
Collection loop: fetch a snapshot every interval, translate it, write it.

One background thread per Poller is the only thing that touches the
provider or writes to the sink. Cycles never overlap -- if a scrape runs
past the interval, the ticks it covered are dropped, not queued.

Failure handling:
  - provider can't be opened    -> loop stops for good, collector_up = 0
  - one fetch fails or times out -> scrape_success = 0 for this cycle only,
                                    previous values stay, next tick retries
"""

from __future__ import annotations

import enum
import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime, timezone
from typing import Optional

from wgexporter.aliases import AliasResolver
from wgexporter.collector.base import DeviceProvider
from wgexporter.errors import ProviderAcquisitionError, SnapshotFetchError
from wgexporter.sink import MetricSink
from wgexporter.snapshot import Snapshot
from wgexporter.translator import translate

log = logging.getLogger(__name__)


class PollerState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SCRAPING = "scraping"
    IDLE = "idle"
    STOPPED = "stopped"


class Poller:

    def __init__(
        self,
        provider: DeviceProvider,
        sink: MetricSink,
        resolver: AliasResolver,
        interval: float = 15.0,
        fetch_timeout: Optional[float] = 10.0,
    ):
        if not (math.isfinite(interval) and 0 < interval <= threading.TIMEOUT_MAX):
            raise ValueError(f"interval must be a positive, finite number of seconds, got {interval!r}")
        if fetch_timeout is not None and not (math.isfinite(fetch_timeout) and 0 < fetch_timeout <= threading.TIMEOUT_MAX):
            raise ValueError(f"fetch timeout must be a positive, finite number of seconds, got {fetch_timeout!r}")
        self._provider = provider
        self._sink = sink
        self._resolver = resolver
        self._interval = interval
        self._fetch_timeout = fetch_timeout

        self._state = PollerState.UNINITIALIZED
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._executor: Optional[ThreadPoolExecutor] = None

        self.last_error: Optional[Exception] = None

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state not in (PollerState.UNINITIALIZED, PollerState.STOPPED)

    def start(self) -> threading.Thread:
        """Run the loop in a daemon thread."""
        if self._state is not PollerState.UNINITIALIZED or self._thread is not None:
            raise RuntimeError("a poller can only be started once")
        self._thread = threading.Thread(target=self.run, name="wg-poller", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None):
        self._stop_event.set()
        if self._thread is not None:
            if self._thread is not threading.current_thread():
                self._thread.join(timeout)
        elif self.running:
            # driven by hand through acquire()/scrape_once(), no loop to unwind
            self._shutdown()

    def run(self):
        """Blocking loop. Returns once stopped or if the provider can't be opened."""
        if not self.acquire():
            return

        try:
            next_tick = time.monotonic()
            while not self._stop_event.is_set():
                self.scrape_once()

                next_tick += self._interval
                now = time.monotonic()
                if next_tick < now:
                    skipped = int((now - next_tick) // self._interval) + 1
                    log.debug("Scrape overran the interval, dropping %d tick(s)", skipped)
                    next_tick += skipped * self._interval

                self._stop_event.wait(next_tick - now)
        finally:
            self._shutdown()

    def acquire(self) -> bool:
        """Open the provider. On failure the poller is stopped permanently."""
        try:
            self._provider.open()
        except ProviderAcquisitionError as e:
            self._fail_permanently(e)
            return False
        except Exception as e:
            self._fail_permanently(ProviderAcquisitionError(str(e)))
            return False

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="wg-fetch")
        self._sink.set_up(True)
        self._state = PollerState.READY
        log.info("Collecting from %s every %.1fs", self._provider.name(), self._interval)
        return True

    def scrape_once(self) -> bool:
        """One fetch -> translate -> write cycle. Returns True on success."""
        if self._state in (PollerState.UNINITIALIZED, PollerState.STOPPED):
            raise RuntimeError(f"cannot scrape in state {self._state.value}")

        self._state = PollerState.SCRAPING
        start = time.perf_counter()
        try:
            try:
                snapshot = self._fetch()
            except SnapshotFetchError as e:
                self.last_error = e
                log.warning("Scrape failed: %s", e)
                self._sink.set_scrape_success(False)
                return False

            self._sink.set_scrape_success(True)
            self._sink.write(translate(snapshot, self._resolver))

            elapsed_ms = (time.perf_counter() - start) * 1000
            self._sink.set_scrape_duration(elapsed_ms)
            self.last_error = None
            log.debug(
                "Scrape completed in %.1fms (%d interfaces, %d peers)",
                elapsed_ms, len(snapshot.devices), snapshot.peer_count(),
            )
            return True
        finally:
            self._state = PollerState.IDLE

    def _fetch(self) -> Snapshot:
        """Ask the provider for devices, bounded by the fetch deadline.

        Anything the provider raises counts as a failed fetch for this cycle.
        """
        try:
            if self._fetch_timeout is None or self._executor is None:
                devices = self._provider.devices()
            else:
                future = self._executor.submit(self._provider.devices)
                try:
                    devices = future.result(timeout=self._fetch_timeout)
                except FutureTimeout:
                    future.cancel()
                    raise SnapshotFetchError(
                        f"device query exceeded {self._fetch_timeout}s deadline"
                    ) from None
        except SnapshotFetchError:
            raise
        except Exception as e:
            raise SnapshotFetchError(f"{type(e).__name__}: {e}") from e

        return Snapshot(devices=devices, timestamp=datetime.now(timezone.utc))

    def _fail_permanently(self, error: ProviderAcquisitionError):
        self.last_error = error
        log.error("Cannot open %s, collection stopped: %s", self._provider.name(), error)
        self._sink.set_scrape_success(False)
        self._sink.set_up(False)
        self._state = PollerState.STOPPED

    def _shutdown(self):
        if self._executor is not None:
            # A hung fetch must not block shutdown
            self._executor.shutdown(wait=False)
            self._executor = None
        try:
            self._provider.close()
        except Exception as e:
            log.warning("Error closing %s: %s", self._provider.name(), e)
        self._sink.set_up(False)
        self._state = PollerState.STOPPED
        log.info("Collection stopped")
