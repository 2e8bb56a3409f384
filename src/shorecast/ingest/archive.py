"""Open a fetched source as one or more decoded tabular text streams.

Three shapes are recognised: a plain delimited file, a single file compressed
with gzip / bzip2 / xz, and a ZIP container holding any number of members.
"""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Iterator

from shorecast.errors import ArchiveError


class ContainerKind(Enum):
    PLAIN = "plain"
    COMPRESSED = "compressed"
    ZIP = "zip"


# Maps file extensions to single-file compression codecs.
_COMPRESSION_MAP: dict[str, str] = {
    ".gz": "gzip",
    ".gzip": "gzip",
    ".bz2": "bz2",
    ".xz": "xz",
}

TABULAR_SUFFIXES = (".csv",)

# macOS archivers add AppleDouble resource forks next to the real entries.
_RESOURCE_FORK_DIR = "__MACOSX/"
_RESOURCE_FORK_PREFIX = "._"


@dataclass(frozen=True)
class TabularStream:
    """A named, decoded text stream ready for ingestion."""

    name: str
    stream: IO[str]


def detect_container(path: Path) -> tuple[ContainerKind, str | None]:
    """Classify *path* by extension, sniffing for ZIP when the name is silent.

    Returns ``(kind, compression_codec_or_None)``.
    """
    suffix = path.suffix.lower()
    if suffix == ".zip":
        return ContainerKind.ZIP, None
    if suffix in _COMPRESSION_MAP:
        return ContainerKind.COMPRESSED, _COMPRESSION_MAP[suffix]
    if zipfile.is_zipfile(path):
        return ContainerKind.ZIP, None
    return ContainerKind.PLAIN, None


def is_tabular_member(name: str) -> bool:
    """True for archive entries that hold delimited data."""
    if name.endswith("/") or not name.lower().endswith(TABULAR_SUFFIXES):
        return False
    basename = name.rsplit("/", 1)[-1]
    return not (
        name.startswith(_RESOURCE_FORK_DIR)
        or f"/{_RESOURCE_FORK_DIR}" in name
        or basename.startswith(_RESOURCE_FORK_PREFIX)
    )


def _open_compressed(path: Path, compression: str | None) -> IO[bytes]:
    """Return an open binary file handle, decompressing on the fly if needed."""
    if compression is None:
        return open(path, "rb")

    if compression == "gzip":
        import gzip as _gzip
        return _gzip.open(path, "rb")  # type: ignore[return-value]
    elif compression == "bz2":
        import bz2 as _bz2
        return _bz2.open(path, "rb")  # type: ignore[return-value]
    elif compression == "xz":
        import lzma as _lzma
        return _lzma.open(path, "rb")  # type: ignore[return-value]
    else:
        raise ValueError(f"Unsupported compression: {compression}")


def _decode(raw: IO[bytes], encoding: str, errors: str) -> io.TextIOWrapper:
    return io.TextIOWrapper(raw, encoding=encoding, errors=errors)


def iter_tabular_streams(
    path: Path, *, encoding: str = "utf-8", errors: str = "replace"
) -> Iterator[TabularStream]:
    """Yield each tabular stream in *path*, in container order.

    Each stream is closed once the caller advances the iterator, so it must
    be consumed before asking for the next one.  Undecodable bytes are
    handled per *errors* (see :func:`codecs.register_error`); the default
    replaces them with U+FFFD so one bad cell does not abort the stream.
    """
    kind, compression = detect_container(path)

    if kind is ContainerKind.ZIP:
        yield from _iter_zip_members(path, encoding, errors)
        return

    name = path.name
    if compression is not None:
        name = path.with_suffix("").name
    with _decode(_open_compressed(path, compression), encoding, errors) as stream:
        yield TabularStream(name=name, stream=stream)


def _iter_zip_members(
    path: Path, encoding: str, errors: str
) -> Iterator[TabularStream]:
    try:
        archive = zipfile.ZipFile(path)
    except zipfile.BadZipFile as exc:
        raise ArchiveError(str(path), str(exc)) from exc

    with archive:
        for info in archive.infolist():
            if not is_tabular_member(info.filename):
                continue
            with _decode(archive.open(info), encoding, errors) as stream:
                yield TabularStream(name=info.filename, stream=stream)
