"""
Tests for the dataset projector and dataset generation.
"""
import json
import logging
from datetime import datetime, timezone

import pytest

from river_orchestration.datasets import DatasetProjector, build_station_series, generate_datasets
from river_orchestration.datasets import projector as projector_module
from river_orchestration.datasets.projector import SERIES_FIELDS, STATUS_NO_DATA, STATUS_WRITTEN
from river_orchestration.exceptions import ConfigError
from river_orchestration.storage import get_dataset_path
from tests.fakes import make_record

# 2024-05-07 06:00 in Brisbane; the day window is 2024-05-06T14:00Z .. 2024-05-07T14:00Z
NOW = datetime(2024, 5, 6, 20, 0, tzinfo=timezone.utc)
MAPPING = {"145003": "QLD", "410730": "NSW"}


def read_dataset(output_dir, region, date_str="2024-05-07"):
    with open(output_dir / region / f"{date_str}.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "assets"


@pytest.fixture
def projector(store, output_dir):
    return DatasetProjector(store, output_dir=output_dir)


class TestBuildStationSeries:
    """Pure grouping of window rows."""

    def test_groups_by_region_then_station(self):
        rows = [
            {"id": "145003", "stationName": "Logan", "observedAt": "t1", "heightM": 1.0,
             "gaugeDatum": None, "tendency": "rising", "crossingM": None,
             "floodClassification": None},
            {"id": "410730", "stationName": "Cotter", "observedAt": "t1", "heightM": 0.4,
             "gaugeDatum": "LGH", "tendency": None, "crossingM": "0.2",
             "floodClassification": "minor"},
            {"id": "145003", "stationName": "Logan", "observedAt": "t2", "heightM": 1.1,
             "gaugeDatum": None, "tendency": "steady", "crossingM": None,
             "floodClassification": None},
        ]

        result = build_station_series(rows, MAPPING)

        assert set(result) == {"QLD", "NSW"}
        assert result["QLD"]["145003"] == {
            "observedAt": ["t1", "t2"],
            "heightM": [1.0, 1.1],
            "gaugeDatum": [None, None],
            "tendency": ["rising", "steady"],
            "crossingM": [None, None],
            "floodClassification": [None, None],
        }
        assert result["NSW"]["410730"]["crossingM"] == ["0.2"]

    def test_unmapped_and_missing_ids(self):
        rows = [
            {"id": "999999", "stationName": "Mystery Creek", "observedAt": "t1"},
            {"id": None, "stationName": "No Id Gauge", "observedAt": "t1"},
        ]

        result = build_station_series(rows, MAPPING)

        assert set(result) == {"UNKNOWN"}
        assert set(result["UNKNOWN"]) == {"999999", "No Id Gauge"}
        assert result["UNKNOWN"]["999999"]["heightM"] == [None]


class TestDatasetProjector:
    """Snapshot generation against a real store."""

    def test_window_selection_and_order(self, store, projector, output_dir):
        store.append_records([
            make_record(station_id="145003", station_name="Logan R at Waterford",
                        observed_at="2024-05-07T09:00:00+10:00", height_m=2.0),
            make_record(station_id="145003", station_name="Logan R at Waterford",
                        observed_at="2024-05-07T08:00:00+10:00", height_m=1.0),
            make_record(station_id="145003", station_name="Logan R at Waterford",
                        observed_at="2024-05-08T00:30:00+10:00", height_m=3.0),
        ])

        summary = projector.project(0, MAPPING, now=NOW)

        assert summary.status == STATUS_WRITTEN
        assert summary.date == "2024-05-07"
        assert summary.row_count == 2
        dataset = read_dataset(output_dir, "qld")
        series = dataset["stations"]["145003"]
        assert series["observedAt"] == ["2024-05-07T08:00:00+10:00", "2024-05-07T09:00:00+10:00"]
        assert series["heightM"] == [1.0, 2.0]

    def test_arrays_are_aligned(self, store, projector, output_dir):
        store.append_records([
            make_record(station_id="145003", station_name="Logan R at Waterford",
                        observed_at=f"2024-05-07T0{hour}:00:00+10:00", tendency=None,
                        height_m=None if hour == 2 else hour)
            for hour in range(1, 5)
        ])

        projector.project(0, MAPPING, now=NOW)

        series = read_dataset(output_dir, "qld")["stations"]["145003"]
        assert set(series) == set(SERIES_FIELDS)
        assert {len(values) for values in series.values()} == {4}
        assert series["heightM"] == [1.0, None, 3.0, 4.0]
        assert series["tendency"] == [None, None, None, None]

    def test_snapshot_header(self, store, projector, output_dir):
        store.append_records([make_record(station_id="145003",
                                          observed_at="2024-05-07T08:00:00+10:00")])

        projector.project(0, MAPPING, now=NOW)

        dataset = read_dataset(output_dir, "qld")
        assert dataset["date"] == "2024-05-07"
        assert dataset["updatedAt"] == "2024-05-07T06:00:00+10:00"

    def test_unknown_station(self, store, projector, output_dir, caplog):
        store.append_records([
            make_record(station_id="999999", station_name="Mystery Creek",
                        observed_at="2024-05-07T08:00:00+10:00"),
        ])

        with caplog.at_level(logging.WARNING):
            summary = projector.project(0, MAPPING, now=NOW)

        assert summary.unknown_stations == ["999999"]
        assert "999999" in read_dataset(output_dir, "unknown")["stations"]
        assert "999999" in caplog.text
        assert "Mystery Creek" in caplog.text

    def test_no_data_writes_nothing(self, store, projector, output_dir):
        store.append_records([make_record(station_id="145003",
                                          observed_at="2024-05-01T08:00:00+10:00")])

        summary = projector.project(0, MAPPING, now=NOW)

        assert summary.status == STATUS_NO_DATA
        assert summary.written == {}
        assert not output_dir.exists()

    def test_rerun_overwrites(self, store, projector, output_dir):
        store.append_records([make_record(station_id="145003",
                                          observed_at="2024-05-07T08:00:00+10:00")])
        projector.project(0, MAPPING, now=NOW)

        store.append_records([make_record(station_id="145003",
                                          observed_at="2024-05-07T10:00:00+10:00")])
        projector.project(0, MAPPING, now=NOW)

        series = read_dataset(output_dir, "qld")["stations"]["145003"]
        assert series["observedAt"] == ["2024-05-07T08:00:00+10:00", "2024-05-07T10:00:00+10:00"]
        assert [p.name for p in (output_dir / "qld").iterdir()] == ["2024-05-07.json"]

    def test_region_write_failure_is_isolated(self, store, projector, output_dir, monkeypatch):
        real_write = projector_module.atomic_write_json

        def flaky_write(data, final_path, indent=None):
            if "nsw" in str(final_path):
                raise OSError("No space left on device")
            real_write(data, final_path, indent)

        monkeypatch.setattr(projector_module, "atomic_write_json", flaky_write)
        store.append_records([
            make_record(station_id="145003", station_name="Logan R at Waterford",
                        observed_at="2024-05-07T08:00:00+10:00"),
            make_record(station_id="410730", station_name="Cotter R at Gingera",
                        observed_at="2024-05-07T08:00:00+10:00"),
        ])

        summary = projector.project(0, MAPPING, now=NOW)

        assert summary.failed_regions == ["NSW"]
        assert list(summary.written) == ["QLD"]
        assert not summary.success
        assert (output_dir / "qld" / "2024-05-07.json").exists()
        assert not (output_dir / "nsw").exists()


    def test_region_outside_assets_dir_is_rejected(self, store, projector, output_dir, tmp_path):
        store.append_records([
            make_record(station_id="145003", station_name="Logan R at Waterford",
                        observed_at="2024-05-07T08:00:00+10:00"),
            make_record(station_id="888888", station_name="Escape Creek",
                        observed_at="2024-05-07T08:00:00+10:00"),
        ])
        mapping = dict(MAPPING, **{"888888": "../escaped"})

        summary = projector.project(0, mapping, now=NOW)

        assert summary.failed_regions == ["../escaped"]
        assert list(summary.written) == ["QLD"]
        assert not (tmp_path / "escaped").exists()


class TestGetDatasetPath:
    """Region codes become a single directory under the assets root."""

    def test_lower_cases_region(self, tmp_path):
        assert get_dataset_path("QLD", "2024-05-07", tmp_path) == tmp_path / "qld" / "2024-05-07.json"

    @pytest.mark.parametrize("region", ["../x", "..", "a/b", "a\\b", "/etc", ""])
    def test_rejects_path_like_regions(self, tmp_path, region):
        with pytest.raises(ValueError, match="Invalid region code"):
            get_dataset_path(region, "2024-05-07", tmp_path)


class TestGenerateDatasets:
    """Mapping file + store + projector."""

    def test_generates_from_geojson_mapping(self, tmp_path, store):
        store.append_records([make_record(station_id="145003",
                                          observed_at="2024-05-06T12:00:00+10:00")])
        db_path = store.db_path
        store.close()

        mapping_path = tmp_path / "gauge-locations.json"
        mapping_path.write_text(json.dumps({
            "type": "FeatureCollection",
            "features": [{"type": "Feature", "geometry": None,
                          "properties": {"bom_stn_num": "145003", "state": "QLD"}}],
        }))
        output_dir = tmp_path / "assets"

        summary = generate_datasets(day_offset=-1, db_path=db_path, output_dir=output_dir,
                                    mapping_path=mapping_path, now=NOW)

        assert summary.date == "2024-05-06"
        assert list(summary.written) == ["QLD"]
        assert "145003" in read_dataset(output_dir, "qld", "2024-05-06")["stations"]

    def test_missing_mapping(self, tmp_path):
        with pytest.raises(ConfigError):
            generate_datasets(db_path=tmp_path / "rivers.duckdb",
                              output_dir=tmp_path / "assets",
                              mapping_path=tmp_path / "missing.json", now=NOW)
