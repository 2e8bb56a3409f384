"""Startup, periodic, and manual import triggers.

All three call :func:`~shorecast.ingest.orchestrator.import_from_source`
with the configured source.  Runs are not coordinated with each other.
"""

from __future__ import annotations

import logging
import threading

from shorecast.config import ShorecastConfig
from shorecast.ingest.orchestrator import ImportResult, import_from_source
from shorecast.store.sqlite import RecordStore

log = logging.getLogger(__name__)


def trigger_import(config: ShorecastConfig, store: RecordStore) -> ImportResult:
    """Run an import now, regardless of the enabled flag."""
    imports = config.imports
    return import_from_source(
        imports.source_url,
        store,
        batch_size=imports.batch_size,
        delimiter=imports.delimiter,
        encoding=imports.encoding,
        encoding_errors=imports.encoding_errors,
    )


def initialize_data(config: ShorecastConfig, store: RecordStore) -> ImportResult | None:
    """Import on startup when enabled and the store holds no records."""
    if not config.imports.enabled:
        log.info("Coastal data import disabled; skipping startup import")
        return None
    if store.count() > 0:
        log.info("Record store already populated; skipping startup import")
        return None
    log.info("Initializing coastal data from %s", config.imports.source_url)
    return trigger_import(config, store)


def refresh_data(config: ShorecastConfig, store: RecordStore) -> ImportResult | None:
    """Periodic refresh: import unconditionally when enabled."""
    if not config.imports.enabled:
        log.info("Coastal data import disabled; skipping refresh")
        return None
    log.info("Refreshing coastal data")
    return trigger_import(config, store)


def run_refresh_loop(
    config: ShorecastConfig,
    store: RecordStore,
    stop_event: threading.Event,
    *,
    interval_seconds: float | None = None,
) -> int:
    """Run the startup import, then refresh every interval until *stop_event* is set.

    Returns the number of refreshes performed.
    """
    interval = interval_seconds or config.imports.refresh_interval_seconds
    initialize_data(config, store)

    refreshes = 0
    while not stop_event.wait(interval):
        refresh_data(config, store)
        refreshes += 1
    return refreshes
