"""Shared test fixtures."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from shorecast.config import ShorecastConfig
from shorecast.store.sqlite import RecordStore

SAMPLE_CSV = textwrap.dedent("""\
    transect_id,lat,lon,region,location,date,erosion_rate,baseline
    T1,42.30,-70.90,North Shore,Nahant,2018-06-15,-1.25,B1
    T2,41.70,-70.00,Cape Cod,Chatham,06/15/2010,2.50,B2
    T3,41.20,-70.60,Islands,Edgartown,1994,0.75,B3
""")


class FakeStore:
    """In-memory stand-in for RecordStore that remembers every batch."""

    def __init__(self) -> None:
        self.batches: list[list] = []
        self.runs: list[dict] = []

    def save_batch(self, records):
        self.batches.append(list(records))

    def count(self) -> int:
        return sum(len(b) for b in self.batches)

    def record_import_run(self, source_uri, status, record_count, **kwargs):
        self.runs.append(
            {"source_uri": source_uri, "status": status, "record_count": record_count, **kwargs}
        )

    @property
    def batch_sizes(self) -> list[int]:
        return [len(b) for b in self.batches]


def make_csv(rows: int, header: str = "transect_id,lat,lon,rate") -> str:
    """Return CSV text with a header and *rows* valid data rows."""
    lines = [header]
    for i in range(rows):
        lines.append(f"T{i},42.{i % 100:02d},-70.5,{i / 10}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    f = tmp_path / "shorelines.csv"
    f.write_text(SAMPLE_CSV)
    return f


@pytest.fixture
def tmp_project(tmp_path: Path, sample_csv: Path) -> Path:
    """Create a minimal shorecast project pointing at the sample CSV."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "shorecast.toml").write_text(textwrap.dedent(f"""\
        [project]
        name = "test-coast"

        [import]
        enabled = true
        source_url = "{sample_csv.as_posix()}"
        batch_size = 2
        refresh_interval_days = 7

        [store]
        path = ".shorecast/records.db"
    """))
    return root


@pytest.fixture
def config(tmp_project: Path, monkeypatch: pytest.MonkeyPatch) -> ShorecastConfig:
    """Load a ShorecastConfig from the temp project."""
    from shorecast.config import load_config

    monkeypatch.delenv("SHORECAST_IMPORT_ENABLED", raising=False)
    monkeypatch.delenv("SHORECAST_SOURCE_URL", raising=False)
    return load_config(tmp_project)


@pytest.fixture
def store(config: ShorecastConfig) -> RecordStore:
    """Open a record store in the temp project."""
    st = RecordStore(config.store_file)
    yield st
    st.close()
