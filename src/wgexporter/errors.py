"""
Error types for the exporter.

Only two failures matter to the collection loop: not being able to reach
WireGuard at all (the loop stops for good) and a single scrape failing
(the next tick tries again).
"""


class ExporterError(Exception):
    """Base class for everything the exporter raises on purpose."""


class ProviderAcquisitionError(ExporterError):
    """Could not get a handle on device state at startup. Fatal to the poller."""


class SnapshotFetchError(ExporterError):
    """One scrape's query failed or timed out. Retried on the next tick."""


class ConfigError(ExporterError):
    """A configuration value couldn't be parsed."""
