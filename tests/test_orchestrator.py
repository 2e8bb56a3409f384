"""Tests for the import entry point."""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path

import pytest

from conftest import FakeStore, make_csv
from shorecast.ingest import orchestrator
from shorecast.ingest.archive import TabularStream
from shorecast.ingest.orchestrator import ImportResult, import_from_source
from shorecast.store.sqlite import RecordStore


class TestImportResult:
    def test_success(self):
        result = ImportResult.success("s.csv", 3, ("s.csv",))
        assert result.ok
        assert result.error is None

    def test_failure(self):
        result = ImportResult.failure("s.csv", "boom")
        assert not result.ok
        assert result.error == "boom"
        assert result.records_imported == 0


class TestImportFromSource:
    def test_plain_csv(self, sample_csv: Path, fake_store: FakeStore):
        result = import_from_source(str(sample_csv), fake_store)

        assert result.ok
        assert result.records_imported == 3
        assert result.streams == ("shorelines.csv",)
        assert fake_store.batch_sizes == [3]
        assert fake_store.runs[0]["status"] == "success"
        assert fake_store.runs[0]["file_checksum"]

    def test_file_uri(self, sample_csv: Path, fake_store: FakeStore):
        result = import_from_source(sample_csv.as_uri(), fake_store)
        assert result.ok
        assert result.records_imported == 3

    def test_zip_ingests_only_tabular_members_in_order(
        self, tmp_path: Path, fake_store: FakeStore
    ):
        archive = tmp_path / "shorelines.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("north.csv", "transect_id,lat\nN1,42.5\nN2,42.6\n")
            zf.writestr("README.txt", "transect_id,lat\nX,0\n")
            zf.writestr("south.csv", "TransectID,Latitude\nS1,41.2\n")

        result = import_from_source(str(archive), fake_store, batch_size=10)

        assert result.ok
        assert result.streams == ("north.csv", "south.csv")
        assert result.records_imported == 3
        # One independent ingest per member: each flushes its own final batch.
        assert fake_store.batch_sizes == [2, 1]
        ids = [r.transect_id for batch in fake_store.batches for r in batch]
        assert ids == ["N1", "N2", "S1"]

    def test_missing_file_is_failure(self, tmp_path: Path, fake_store: FakeStore):
        result = import_from_source(str(tmp_path / "nope.csv"), fake_store)

        assert not result.ok
        assert "Source file not found" in result.error
        assert fake_store.batches == []
        assert fake_store.runs[0]["status"] == "failure"
        assert fake_store.runs[0]["message"] == result.error

    def test_unknown_scheme_is_failure(self, fake_store: FakeStore):
        result = import_from_source("ftp://example.com/data.csv", fake_store)
        assert not result.ok
        assert "No fetcher registered" in result.error

    def test_corrupt_zip_is_failure(self, tmp_path: Path, fake_store: FakeStore):
        broken = tmp_path / "broken.zip"
        broken.write_bytes(b"PK garbage")
        result = import_from_source(str(broken), fake_store)
        assert not result.ok
        assert "Cannot open archive" in result.error

    def test_failure_is_logged(
        self, tmp_path: Path, fake_store: FakeStore, caplog: pytest.LogCaptureFixture
    ):
        with caplog.at_level(logging.ERROR, logger="shorecast.ingest.orchestrator"):
            import_from_source(str(tmp_path / "nope.csv"), fake_store)
        assert any("Error importing coastal data" in r.getMessage() for r in caplog.records)

    def test_io_error_mid_stream(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        source = tmp_path / "data.csv"
        source.write_text("placeholder\n")
        text = make_csv(2500)

        def failing_lines():
            lines = io.StringIO(text)
            yield next(lines)
            for i, line in enumerate(lines):
                if i == 1500:
                    raise OSError("stream truncated")
                yield line

        def fake_streams(path, *, encoding="utf-8", errors="replace"):
            yield TabularStream(name="data.csv", stream=failing_lines())

        monkeypatch.setattr(orchestrator, "iter_tabular_streams", fake_streams)

        with RecordStore(tmp_path / "records.db") as store:
            calls: list[int] = []
            real_save = store.save_batch

            def spy_save(records):
                records = list(records)
                calls.append(len(records))
                return real_save(records)

            monkeypatch.setattr(store, "save_batch", spy_save)
            result = import_from_source(str(source), store, batch_size=1000)

            assert calls == [1000]
            assert store.count() == 1000
            assert not result.ok
            assert result.error == "stream truncated"
            runs = store.get_import_runs()
            assert [r.status for r in runs] == ["failure"]
            assert result.records_imported == 1000
            assert [r.record_count for r in runs] == [1000]

    def test_reimport_into_emptied_store_is_stable(self, tmp_path: Path):
        source = tmp_path / "data.csv"
        source.write_text(make_csv(1234) + "short\n")

        with RecordStore(tmp_path / "records.db") as store:
            first = import_from_source(str(source), store, batch_size=100)
            count_first = store.count()
            store.clear()
            second = import_from_source(str(source), store, batch_size=100)
            count_second = store.count()

        assert first.ok and second.ok
        assert count_first == count_second == 1234
        assert first.records_imported == second.records_imported == 1234

    def test_persists_parsed_values(self, sample_csv: Path, tmp_path: Path):
        with RecordStore(tmp_path / "records.db") as store:
            result = import_from_source(str(sample_csv), store, batch_size=2)
            rows = store.find_all()

        assert result.ok
        assert [s.record.transect_id for s in rows] == ["T1", "T2", "T3"]
        first = rows[0].record
        assert first.latitude == 42.30
        assert first.region == "North Shore"
        assert first.metadata == "baseline: B1"
        assert str(rows[1].record.measurement_date) == "2010-06-15"
        assert str(rows[2].record.measurement_date) == "1994-01-01"

    def test_undecodable_byte_keeps_row(self, tmp_path: Path):
        source = tmp_path / "mixed.csv"
        source.write_bytes(b"lat,lon,location\n1,2,Nahant\n3,4,Caf\xe9\n5,6,Chatham\n")

        with RecordStore(tmp_path / "records.db") as store:
            result = import_from_source(str(source), store)
            rows = store.find_all()

        assert result.ok
        assert result.records_imported == 3
        assert [s.record.location for s in rows] == ["Nahant", "Caf\ufffd", "Chatham"]

    def test_undecodable_last_row_keeps_buffered_records(self, tmp_path: Path):
        source = tmp_path / "big.csv"
        source.write_bytes(make_csv(1499).encode("utf-8") + b"T\xff,42.0,-70.5,0.1\n")

        with RecordStore(tmp_path / "records.db") as store:
            result = import_from_source(str(source), store, batch_size=1000)
            count = store.count()

        assert result.ok
        assert result.records_imported == count == 1500

    def test_zip_with_resource_fork(self, tmp_path: Path, fake_store: FakeStore):
        archive = tmp_path / "export.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("data.csv", make_csv(3))
            zf.writestr("__MACOSX/._data.csv", b"\x00\x05\x16\x07\xff\xfe\x00\x02")

        result = import_from_source(str(archive), fake_store)

        assert result.ok
        assert result.streams == ("data.csv",)
        assert result.records_imported == 3
