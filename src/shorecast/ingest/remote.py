"""Source fetching with protocol-based dispatch and checksum reporting."""

from __future__ import annotations

import shutil
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar
from urllib.parse import unquote, urlparse

from shorecast.errors import RemoteFetchError
from shorecast.ingest.batch import compute_file_checksum


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FetchResult:
    """Result of fetching a source file."""

    local_path: Path
    uri: str
    checksum: str
    size: int


@dataclass(frozen=True)
class RemoteSource:
    """Describes a dataset location to fetch.

    Parameters
    ----------
    uri:
        ``https://…`` / ``http://…`` URL, ``file://`` URI, or a plain
        filesystem path.
    filename:
        Override for the local filename.  Defaults to the basename of the URI
        path component.
    """

    uri: str
    filename: str | None = None

    @property
    def scheme(self) -> str:
        scheme = urlparse(self.uri).scheme.lower()
        # A Windows drive letter ("C:\data.csv") is a path, not a scheme.
        return "" if len(scheme) == 1 else scheme

    @property
    def default_filename(self) -> str:
        parsed = urlparse(self.uri)
        basename = Path(unquote(parsed.path)).name
        return self.filename or basename or "download"


# ---------------------------------------------------------------------------
# Abstract fetcher
# ---------------------------------------------------------------------------


class Fetcher(ABC):
    """Protocol handler that knows how to obtain files for a URI scheme."""

    #: Schemes this fetcher handles, e.g. ``("https", "http")``.
    schemes: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    def fetch(self, source: RemoteSource, dest: Path) -> FetchResult:
        """Make *source* available locally and return a `FetchResult`.

        Downloading implementations **must** write *dest* atomically (write
        to a temporary file in the same directory, then rename) so that
        partial downloads are never visible.
        """


# ---------------------------------------------------------------------------
# HTTP / HTTPS fetcher
# ---------------------------------------------------------------------------


class HttpFetcher(Fetcher):
    """Fetch files over HTTP / HTTPS using :mod:`urllib.request`."""

    schemes: ClassVar[tuple[str, ...]] = ("http", "https")

    def __init__(self, timeout: int = 120, chunk_size: int = 8192) -> None:
        self._timeout = timeout
        self._chunk_size = chunk_size

    def fetch(self, source: RemoteSource, dest: Path) -> FetchResult:
        import urllib.error
        import urllib.request

        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path_str = tempfile.mkstemp(dir=dest.parent, suffix=".part")
        tmp_path = Path(tmp_path_str)

        try:
            req = urllib.request.Request(source.uri, headers={"User-Agent": "shorecast"})
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                with open(tmp_fd, "wb") as f:
                    while True:
                        chunk = resp.read(self._chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)

            shutil.move(str(tmp_path), str(dest))
        except (urllib.error.URLError, TimeoutError) as exc:
            tmp_path.unlink(missing_ok=True)
            raise RemoteFetchError(f"Failed to fetch {source.uri}: {exc}") from exc
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

        return FetchResult(
            local_path=dest,
            uri=source.uri,
            checksum=compute_file_checksum(dest),
            size=dest.stat().st_size,
        )


# ---------------------------------------------------------------------------
# Local file fetcher
# ---------------------------------------------------------------------------


class FileFetcher(Fetcher):
    """Resolve ``file://`` URIs and plain paths.  Files are read in place."""

    schemes: ClassVar[tuple[str, ...]] = ("file", "")

    def fetch(self, source: RemoteSource, dest: Path) -> FetchResult:
        if source.scheme == "file":
            parsed = urlparse(source.uri)
            path = Path(unquote(parsed.netloc + parsed.path))
        else:
            path = Path(source.uri)

        if not path.is_file():
            raise RemoteFetchError(f"Source file not found: {path}")

        return FetchResult(
            local_path=path,
            uri=source.uri,
            checksum=compute_file_checksum(path),
            size=path.stat().st_size,
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_BUILTIN_FETCHERS: list[type[Fetcher]] = [HttpFetcher, FileFetcher]


class FetcherRegistry:
    """Maps URI schemes to `Fetcher` instances."""

    def __init__(self) -> None:
        self._fetchers: dict[str, Fetcher] = {}

    def register(self, fetcher: Fetcher) -> None:
        """Register a fetcher for all of its declared schemes."""
        for scheme in fetcher.schemes:
            self._fetchers[scheme.lower()] = fetcher

    def get(self, scheme: str) -> Fetcher:
        """Look up the fetcher for *scheme*, raising `RemoteFetchError` if unknown."""
        try:
            return self._fetchers[scheme.lower()]
        except KeyError:
            supported = ", ".join(sorted(s or "<path>" for s in self._fetchers)) or "(none)"
            raise RemoteFetchError(
                f"No fetcher registered for scheme '{scheme}'. "
                f"Supported schemes: {supported}"
            )

    @classmethod
    def default(cls) -> "FetcherRegistry":
        """Return a registry pre-loaded with the built-in fetchers."""
        reg = cls()
        for fetcher_cls in _BUILTIN_FETCHERS:
            reg.register(fetcher_cls())
        return reg


def fetch_source(
    source: RemoteSource | str,
    staging_dir: Path,
    *,
    registry: FetcherRegistry | None = None,
) -> FetchResult:
    """Fetch *source* into *staging_dir* (or resolve it in place).

    Raises
    ------
    RemoteFetchError
        On download failure, a missing local file, or an unknown scheme.
    """
    if isinstance(source, str):
        source = RemoteSource(uri=source)

    reg = registry or FetcherRegistry.default()
    fetcher = reg.get(source.scheme)
    return fetcher.fetch(source, staging_dir / source.default_filename)
