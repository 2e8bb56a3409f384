"""Header synonym table: raw column names to canonical record fields."""

from __future__ import annotations

from enum import Enum


class CanonicalField(Enum):
    TRANSECT_ID = "transect_id"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    LOCATION = "location"
    REGION = "region"
    MEASUREMENT_DATE = "measurement_date"
    SHORE_POS_UNCERT = "shore_pos_uncert"
    SHORELINE_POSITION = "shoreline_position"
    SHORELINE_CHANGE = "shoreline_change"
    EROSION_RATE = "erosion_rate"
    METADATA = "metadata"


# Lower-case header tokens accepted for each field.
HEADER_SYNONYMS: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.TRANSECT_ID: ("transect_id", "transectid"),
    CanonicalField.LATITUDE: ("latitude", "lat"),
    CanonicalField.LONGITUDE: ("longitude", "long", "lon"),
    CanonicalField.LOCATION: ("location",),
    CanonicalField.REGION: ("region",),
    CanonicalField.MEASUREMENT_DATE: ("date", "measurement_date"),
    CanonicalField.SHORE_POS_UNCERT: ("shore_pos_uncert", "uncertainty"),
    CanonicalField.SHORELINE_POSITION: ("shoreline_position", "position"),
    CanonicalField.SHORELINE_CHANGE: ("shoreline_change", "change"),
    CanonicalField.EROSION_RATE: ("erosion_rate", "rate"),
    CanonicalField.METADATA: ("metadata",),
}

_HEADER_INDEX: dict[str, CanonicalField] = {
    synonym: canonical
    for canonical, synonyms in HEADER_SYNONYMS.items()
    for synonym in synonyms
}


def map_header(token: str) -> CanonicalField | None:
    """Return the field *token* designates, or ``None`` for an unmapped column."""
    return _HEADER_INDEX.get(token.strip().lower())
