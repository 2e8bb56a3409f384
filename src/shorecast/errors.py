"""Custom exceptions for Shorecast."""


class ShorecastError(Exception):
    """Base exception for all Shorecast errors."""


class ProjectNotInitializedError(ShorecastError):
    """Raised when a shorecast command is run outside an initialized project."""

    def __init__(self, path: str = "."):
        super().__init__(
            f"No shorecast project found at '{path}'. Run 'shorecast init' first."
        )


class ConfigError(ShorecastError):
    """Raised for configuration file issues."""


class StoreError(ShorecastError):
    """Raised for SQLite record store issues."""


class IngestError(ShorecastError):
    """Raised for data ingest issues."""


class RemoteFetchError(IngestError):
    """Raised when a source file cannot be fetched."""


class ArchiveError(IngestError):
    """Raised when a compressed source cannot be opened."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot open archive '{path}': {reason}")
        self.path = path
        self.reason = reason


class StreamAbortedError(IngestError):
    """Raised when a tabular stream fails partway; earlier batches stay saved."""

    def __init__(self, source: str, records_saved: int, reason: str):
        super().__init__(reason)
        self.source = source
        self.records_saved = records_saved
