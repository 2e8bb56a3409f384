"""Batch ingestion of delimited text streams into the record store."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from shorecast.config import DEFAULT_BATCH_SIZE
from shorecast.errors import StreamAbortedError
from shorecast.ingest.record import CoastalRecord, HeaderMapping

log = logging.getLogger(__name__)

_BOM = "\ufeff"


def compute_file_checksum(path: Path, algorithm: str = "sha256") -> str:
    """Return the hex digest of a file."""
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


@dataclass(frozen=True)
class IngestStats:
    """Counters for one ingested stream."""

    source: str
    lines_read: int
    records_imported: int
    rows_skipped: int
    batches_flushed: int


class BatchIngestor:
    """Reads a header row plus data rows and saves records in fixed-size batches.

    The store only needs a ``save_batch(records)`` method.  Rows are split on
    a single delimiter character; quoted fields are not supported.
    """

    def __init__(
        self,
        store: Any,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delimiter: str = ",",
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._store = store
        self._batch_size = batch_size
        self._delimiter = delimiter

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def _split(self, line: str) -> list[str]:
        return line.rstrip("\r\n").split(self._delimiter)

    def ingest(self, lines: Iterable[str], source: str = "<stream>") -> IngestStats:
        """Consume *lines* to the end and return the counters.

        Any error is logged and re-raised as ``StreamAbortedError`` carrying the
        number of records already saved; those batches stay saved and the
        unsaved remainder is dropped.
        """
        mapping: HeaderMapping | None = None
        buffer: list[CoastalRecord] = []
        lines_read = 0
        imported = 0
        skipped = 0
        flushed = 0
        saved = 0

        try:
            for line in lines:
                lines_read += 1
                if mapping is None:
                    mapping = HeaderMapping.from_headers(self._split(line.lstrip(_BOM)))
                    continue

                record = mapping.assemble(self._split(line))
                if record is None:
                    skipped += 1
                    continue

                buffer.append(record)
                imported += 1
                if imported % self._batch_size == 0:
                    self._store.save_batch(buffer)
                    saved += len(buffer)
                    buffer = []
                    flushed += 1
                    log.info("Imported %d coastal records from %s", imported, source)

            if buffer:
                self._store.save_batch(buffer)
                saved += len(buffer)
                flushed += 1
        except Exception as exc:
            log.error(
                "Ingesting %s aborted after %d lines; %d records already saved",
                source,
                lines_read,
                saved,
            )
            raise StreamAbortedError(source, saved, str(exc) or type(exc).__name__) from exc

        log.info(
            "Total coastal records imported from %s: %d (%d malformed rows skipped)",
            source,
            imported,
            skipped,
        )
        return IngestStats(
            source=source,
            lines_read=lines_read,
            records_imported=imported,
            rows_skipped=skipped,
            batches_flushed=flushed,
        )
