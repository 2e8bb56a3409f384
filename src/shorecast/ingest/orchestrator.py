"""Import entry point: fetch a source, open its tabular streams, ingest each."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shorecast.config import DEFAULT_BATCH_SIZE, DEFAULT_ENCODING_ERRORS
from shorecast.errors import StreamAbortedError
from shorecast.ingest.archive import iter_tabular_streams
from shorecast.ingest.batch import BatchIngestor
from shorecast.ingest.remote import FetcherRegistry, fetch_source

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import run."""

    ok: bool
    source: str
    records_imported: int = 0
    streams: tuple[str, ...] = ()
    error: str | None = None

    @classmethod
    def success(
        cls, source: str, records_imported: int, streams: tuple[str, ...]
    ) -> "ImportResult":
        return cls(True, source, records_imported, streams)

    @classmethod
    def failure(
        cls,
        source: str,
        error: str,
        records_imported: int = 0,
        streams: tuple[str, ...] = (),
    ) -> "ImportResult":
        return cls(False, source, records_imported, streams, error)


def _reason(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def import_from_source(
    source_ref: str,
    store: Any,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    delimiter: str = ",",
    encoding: str = "utf-8",
    encoding_errors: str = DEFAULT_ENCODING_ERRORS,
    registry: FetcherRegistry | None = None,
) -> ImportResult:
    """Import every tabular stream found at *source_ref* into *store*.

    Never raises: any failure is logged and returned as
    ``ImportResult.failure`` carrying the original error message.  Batches
    saved before the failure remain in the store and are counted in
    ``records_imported``.
    """
    started_at = datetime.now(timezone.utc).isoformat()
    ingestor = BatchIngestor(store, batch_size=batch_size, delimiter=delimiter)
    checksum: str | None = None
    imported = 0
    streams: list[str] = []

    log.info("Importing coastal data from %s", source_ref)
    try:
        with tempfile.TemporaryDirectory(prefix="shorecast-") as staging:
            fetched = fetch_source(source_ref, Path(staging), registry=registry)
            checksum = fetched.checksum
            for tabular in iter_tabular_streams(
                fetched.local_path, encoding=encoding, errors=encoding_errors
            ):
                streams.append(tabular.name)
                stats = ingestor.ingest(tabular.stream, source=tabular.name)
                imported += stats.records_imported
    except Exception as exc:
        if isinstance(exc, StreamAbortedError):
            imported += exc.records_saved
        log.exception("Error importing coastal data from %s", source_ref)
        result = ImportResult.failure(source_ref, _reason(exc), imported, tuple(streams))
    else:
        log.info(
            "Coastal data import completed: %d records from %d stream(s)",
            imported,
            len(streams),
        )
        result = ImportResult.success(source_ref, imported, tuple(streams))

    _record_run(store, result, checksum, started_at)
    return result


def _record_run(
    store: Any, result: ImportResult, checksum: str | None, started_at: str
) -> None:
    try:
        store.record_import_run(
            result.source,
            "success" if result.ok else "failure",
            result.records_imported,
            started_at=started_at,
            file_checksum=checksum,
            message=result.error,
        )
    except Exception:
        log.exception("Could not record import run for %s", result.source)
