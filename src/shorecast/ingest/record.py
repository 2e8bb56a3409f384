"""Canonical coastal record and the row assembler that builds it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Sequence

from shorecast.ingest.fields import CanonicalField, map_header
from shorecast.ingest.values import parse_date, parse_number

# Provenance of the USGS Massachusetts Shoreline Change Project release.
DATA_SOURCE = "USGS CMGDS"
DATASET_DOI = "F73J3B0B"
DATA_URL = "https://cmgds.marine.usgs.gov/data/whcmsc/data-release/doi-F73J3B0B/"

METADATA_SEPARATOR = "; "


@dataclass(frozen=True)
class CoastalRecord:
    """One shoreline measurement in the fixed ingestion schema."""

    transect_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    location: str | None = None
    region: str | None = None
    measurement_date: date | None = None
    shore_pos_uncert: float | None = None
    shoreline_position: float | None = None
    shoreline_change: float | None = None
    erosion_rate: float | None = None
    metadata: str | None = None
    data_source: str = DATA_SOURCE
    dataset_doi: str = DATASET_DOI
    data_url: str = DATA_URL


def _parse_text(raw: str) -> str | None:
    return raw or None


# Parser for every typed field; METADATA is handled separately.
_FIELD_PARSERS: dict[CanonicalField, Callable[[str], Any]] = {
    CanonicalField.TRANSECT_ID: _parse_text,
    CanonicalField.LATITUDE: parse_number,
    CanonicalField.LONGITUDE: parse_number,
    CanonicalField.LOCATION: _parse_text,
    CanonicalField.REGION: _parse_text,
    CanonicalField.MEASUREMENT_DATE: parse_date,
    CanonicalField.SHORE_POS_UNCERT: parse_number,
    CanonicalField.SHORELINE_POSITION: parse_number,
    CanonicalField.SHORELINE_CHANGE: parse_number,
    CanonicalField.EROSION_RATE: parse_number,
}


@dataclass(frozen=True)
class ColumnBinding:
    index: int
    header: str
    field: CanonicalField | None


@dataclass(frozen=True)
class HeaderMapping:
    """Column-to-field bindings resolved once from a header row."""

    columns: tuple[ColumnBinding, ...]

    @classmethod
    def from_headers(cls, headers: Sequence[str]) -> "HeaderMapping":
        columns = []
        for index, raw in enumerate(headers):
            header = raw.strip()
            columns.append(ColumnBinding(index, header, map_header(header)))
        return cls(tuple(columns))

    def __len__(self) -> int:
        return len(self.columns)

    def assemble(self, values: Sequence[str]) -> CoastalRecord | None:
        """Build one record from a data row.

        Returns ``None`` when there is no header or the row has fewer values
        than headers.  Extra trailing values are ignored.
        """
        if not self.columns or len(values) < len(self.columns):
            return None

        draft: dict[str, Any] = {}
        metadata: str | None = None
        for column in self.columns:
            value = values[column.index].strip()
            if column.field is None:
                entry = f"{column.header}: {value}"
                metadata = entry if metadata is None else metadata + METADATA_SEPARATOR + entry
            elif column.field is CanonicalField.METADATA:
                metadata = value
            else:
                draft[column.field.value] = _FIELD_PARSERS[column.field](value)

        return CoastalRecord(metadata=metadata, **draft)


def assemble(
    headers: Sequence[str] | None, values: Sequence[str]
) -> CoastalRecord | None:
    """Build one record from a header row and a data row."""
    if not headers:
        return None
    return HeaderMapping.from_headers(headers).assemble(values)
