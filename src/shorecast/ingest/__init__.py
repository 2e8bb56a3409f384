"""Data ingest: header mapping, value parsing, batching, fetching, and import runs."""

from shorecast.ingest.batch import BatchIngestor, IngestStats, compute_file_checksum
from shorecast.ingest.fields import CanonicalField, map_header
from shorecast.ingest.orchestrator import ImportResult, import_from_source
from shorecast.ingest.record import CoastalRecord, HeaderMapping, assemble
from shorecast.ingest.remote import (
    FetchResult,
    FetcherRegistry,
    FileFetcher,
    HttpFetcher,
    RemoteSource,
    fetch_source,
)
from shorecast.ingest.values import parse_date, parse_number

__all__ = [
    # fields / values / record
    "CanonicalField",
    "CoastalRecord",
    "HeaderMapping",
    "assemble",
    "map_header",
    "parse_date",
    "parse_number",
    # batch
    "BatchIngestor",
    "IngestStats",
    "compute_file_checksum",
    # remote
    "FetchResult",
    "FetcherRegistry",
    "FileFetcher",
    "HttpFetcher",
    "RemoteSource",
    "fetch_source",
    # orchestration
    "ImportResult",
    "import_from_source",
]
