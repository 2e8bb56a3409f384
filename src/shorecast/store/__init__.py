"""Persistent storage for ingested coastal records."""

from shorecast.store.sqlite import ImportRun, RecordStore, StoredRecord

__all__ = ["ImportRun", "RecordStore", "StoredRecord"]
