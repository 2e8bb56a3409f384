"""SQLite record store: persisted coastal records and the import-run ledger."""

from __future__ import annotations

import math
import sqlite3
import uuid
from dataclasses import dataclass, fields
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable

from shorecast.errors import StoreError
from shorecast.ingest.record import CoastalRecord

_SCHEMA_VERSION = 1

_EARTH_RADIUS_KM = 6371.0088

_INIT_SQL = """\
CREATE TABLE IF NOT EXISTS store_meta (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS coastal_records (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    transect_id        TEXT,
    latitude           REAL,
    longitude          REAL,
    location           TEXT,
    region             TEXT,
    measurement_date   TEXT,
    shore_pos_uncert   REAL,
    shoreline_position REAL,
    shoreline_change   REAL,
    erosion_rate       REAL,
    metadata           TEXT,
    data_source        TEXT NOT NULL,
    dataset_doi        TEXT NOT NULL,
    data_url           TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_coastal_records_region
    ON coastal_records (region COLLATE NOCASE);

CREATE INDEX IF NOT EXISTS idx_coastal_records_date
    ON coastal_records (measurement_date);

CREATE TABLE IF NOT EXISTS import_runs (
    run_id        TEXT PRIMARY KEY,
    source_uri    TEXT NOT NULL,
    file_checksum TEXT,
    status        TEXT NOT NULL,
    record_count  INTEGER NOT NULL,
    message       TEXT,
    started_at    TEXT NOT NULL,
    finished_at   TEXT NOT NULL
);
"""

_RECORD_COLUMNS = tuple(f.name for f in fields(CoastalRecord))
_SELECT_RECORDS = "SELECT id, " + ", ".join(_RECORD_COLUMNS) + " FROM coastal_records"


@dataclass(frozen=True)
class StoredRecord:
    """A persisted record together with its store-assigned id."""

    id: int
    record: CoastalRecord


@dataclass
class ImportRun:
    run_id: str
    source_uri: str
    file_checksum: str | None
    status: str
    record_count: int
    message: str | None
    started_at: str
    finished_at: str


def _to_row(record: CoastalRecord) -> tuple:
    values = []
    for name in _RECORD_COLUMNS:
        value = getattr(record, name)
        values.append(value.isoformat() if isinstance(value, date) else value)
    return tuple(values)


def _from_row(row: tuple) -> StoredRecord:
    data = dict(zip(_RECORD_COLUMNS, row[1:]))
    if data["measurement_date"] is not None:
        data["measurement_date"] = date.fromisoformat(data["measurement_date"])
    return StoredRecord(id=row[0], record=CoastalRecord(**data))


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def haversine_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = phi2 - phi1
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # rounding can push a just past 1 for antipodal points
    return 2 * _EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


class RecordStore:
    """SQLite-backed store for coastal records and import runs."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(str(db_path))
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open record store {db_path}: {exc}") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        self._conn.executescript(_INIT_SQL)
        cur = self._conn.execute(
            "SELECT value FROM store_meta WHERE key = 'schema_version'"
        )
        row = cur.fetchone()
        if row is None:
            self._conn.execute(
                "INSERT INTO store_meta (key, value) VALUES (?, ?)",
                ("schema_version", str(_SCHEMA_VERSION)),
            )
            self._conn.commit()

    @property
    def path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def save_batch(self, records: Iterable[CoastalRecord]) -> list[int]:
        """Insert *records* in one transaction and return their new ids."""
        placeholders = ", ".join("?" for _ in _RECORD_COLUMNS)
        sql = (
            f"INSERT INTO coastal_records ({', '.join(_RECORD_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )
        ids: list[int] = []
        try:
            with self._conn:
                for record in records:
                    cur = self._conn.execute(sql, _to_row(record))
                    ids.append(cur.lastrowid)
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to save batch of {len(ids)}+ records: {exc}") from exc
        return ids

    def count(self) -> int:
        cur = self._conn.execute("SELECT COUNT(*) FROM coastal_records")
        return cur.fetchone()[0]

    def clear(self) -> int:
        """Delete every record.  Returns the number removed."""
        with self._conn:
            cur = self._conn.execute("DELETE FROM coastal_records")
        return cur.rowcount

    def get(self, record_id: int) -> StoredRecord | None:
        cur = self._conn.execute(_SELECT_RECORDS + " WHERE id = ?", (record_id,))
        row = cur.fetchone()
        return _from_row(row) if row else None

    def find_all(self, limit: int | None = None, offset: int = 0) -> list[StoredRecord]:
        sql = _SELECT_RECORDS + " ORDER BY id"
        params: list = []
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params += [limit, offset]
        elif offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(offset)
        return [_from_row(row) for row in self._conn.execute(sql, params).fetchall()]

    def find_by_filter(
        self,
        *,
        region: str | None = None,
        location: str | None = None,
        start: date | None = None,
        end: date | None = None,
        min_erosion_rate: float | None = None,
        limit: int | None = None,
    ) -> list[StoredRecord]:
        """Return records matching every given criterion.

        ``region`` matches exactly and ``location`` as a substring, both
        ignoring case.  ``start``/``end`` bound the measurement date
        inclusively.  ``min_erosion_rate`` keeps rates strictly above the
        threshold and orders by rate, highest first.
        """
        clauses: list[str] = []
        params: list = []
        if region is not None:
            clauses.append("region = ? COLLATE NOCASE")
            params.append(region)
        if location is not None:
            clauses.append("lower(location) LIKE '%' || lower(?) || '%' ESCAPE '\\'")
            params.append(_escape_like(location))
        if start is not None:
            clauses.append("measurement_date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("measurement_date <= ?")
            params.append(end.isoformat())
        if min_erosion_rate is not None:
            clauses.append("erosion_rate > ?")
            params.append(min_erosion_rate)

        sql = _SELECT_RECORDS
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY erosion_rate DESC, id" if min_erosion_rate is not None else " ORDER BY id"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return [_from_row(row) for row in self._conn.execute(sql, params).fetchall()]

    def find_high_erosion(self, threshold: float = 1.0) -> list[StoredRecord]:
        return self.find_by_filter(min_erosion_rate=threshold)

    def find_nearby(
        self, longitude: float, latitude: float, radius_km: float = 10.0
    ) -> list[StoredRecord]:
        """Records within *radius_km* of the point, nearest first."""
        cur = self._conn.execute(
            _SELECT_RECORDS + " WHERE latitude IS NOT NULL AND longitude IS NOT NULL"
        )
        hits: list[tuple[float, StoredRecord]] = []
        for row in cur.fetchall():
            stored = _from_row(row)
            distance = haversine_km(
                longitude, latitude, stored.record.longitude, stored.record.latitude
            )
            if distance <= radius_km:
                hits.append((distance, stored))
        hits.sort(key=lambda hit: (hit[0], hit[1].id))
        return [stored for _, stored in hits]

    def distinct_regions(self) -> list[str]:
        return self._distinct("region")

    def distinct_locations(self) -> list[str]:
        return self._distinct("location")

    def _distinct(self, column: str) -> list[str]:
        cur = self._conn.execute(
            f"SELECT DISTINCT {column} FROM coastal_records "
            f"WHERE {column} IS NOT NULL ORDER BY {column}"
        )
        return [row[0] for row in cur.fetchall()]

    # ------------------------------------------------------------------
    # Import runs
    # ------------------------------------------------------------------

    def record_import_run(
        self,
        source_uri: str,
        status: str,
        record_count: int,
        *,
        started_at: str,
        file_checksum: str | None = None,
        message: str | None = None,
        run_id: str | None = None,
    ) -> ImportRun:
        rid = run_id or uuid.uuid4().hex[:12]
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._conn:
                self._conn.execute(
                    """INSERT INTO import_runs
                       (run_id, source_uri, file_checksum, status, record_count,
                        message, started_at, finished_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (rid, source_uri, file_checksum, status, record_count,
                     message, started_at, now),
                )
        except sqlite3.IntegrityError as exc:
            raise StoreError(f"Import run '{rid}' is already recorded.") from exc
        return ImportRun(
            run_id=rid,
            source_uri=source_uri,
            file_checksum=file_checksum,
            status=status,
            record_count=record_count,
            message=message,
            started_at=started_at,
            finished_at=now,
        )

    def get_import_runs(self) -> list[ImportRun]:
        cur = self._conn.execute(
            "SELECT run_id, source_uri, file_checksum, status, record_count, "
            "message, started_at, finished_at "
            "FROM import_runs ORDER BY finished_at, rowid"
        )
        return [
            ImportRun(
                run_id=row[0],
                source_uri=row[1],
                file_checksum=row[2],
                status=row[3],
                record_count=row[4],
                message=row[5],
                started_at=row[6],
                finished_at=row[7],
            )
            for row in cur.fetchall()
        ]
