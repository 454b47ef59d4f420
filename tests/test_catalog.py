"""
Tests for the product catalog and the station-to-region mapping.
"""
import json

import pytest

from river_orchestration.datasets import load_region_mapping
from river_orchestration.datasets.regions import parse_region_mapping
from river_orchestration.exceptions import ConfigError
from river_orchestration.fetch import RemoteResource, load_catalog
from river_orchestration.fetch.catalog import parse_catalog


class TestCatalog:
    """Catalog entries and the not-configured convention."""

    def test_remote_path_and_legacy_filename(self):
        catalog = parse_catalog([
            {"name": "Queensland rivers", "remotePath": "IDQ60005.html"},
            {"name": "NSW rivers", "filename": "IDN60140.html"},
        ])

        assert catalog == [
            RemoteResource("Queensland rivers", "IDQ60005.html"),
            RemoteResource("NSW rivers", "IDN60140.html"),
        ]

    @pytest.mark.parametrize("remote_path", ["", "   ", None])
    def test_empty_path_is_not_configured(self, remote_path):
        assert not RemoteResource("Pending", remote_path).is_configured

    def test_name_defaults_to_path(self):
        assert parse_catalog([{"remotePath": "IDV60150.html"}])[0].name == "IDV60150.html"

    @pytest.mark.parametrize("entries", [{"name": "x"}, ["IDQ60005.html"], [{"remotePath": ""}]])
    def test_invalid_catalog(self, entries):
        with pytest.raises(ConfigError):
            parse_catalog(entries)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"name": "A", "remotePath": "a.html"}]))

        assert load_catalog(path) == [RemoteResource("A", "a.html")]

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("[{")

        with pytest.raises(ConfigError, match="not valid JSON"):
            load_catalog(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_catalog(tmp_path / "missing.json")


class TestRegionMapping:
    """GeoJSON and list mapping formats."""

    def test_geojson(self):
        mapping = parse_region_mapping({
            "type": "FeatureCollection",
            "features": [
                {"properties": {"bom_stn_num": "145003", "state": "QLD"}},
                {"properties": {"bom_stn_num": 410730, "state": "NSW"}},
                {"properties": {"bom_stn_num": "000001"}},
                {"properties": None},
            ],
        })

        assert mapping == {"145003": "QLD", "410730": "NSW"}

    def test_list(self):
        mapping = parse_region_mapping([
            {"stationId": "145003", "regionCode": "QLD"},
            {"stationId": "", "regionCode": "VIC"},
        ])

        assert mapping == {"145003": "QLD"}

    def test_unsupported_shape(self):
        with pytest.raises(ConfigError):
            parse_region_mapping({"stations": []})

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_region_mapping(tmp_path / "missing.json")

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "gauges.json"
        path.write_text(json.dumps([{"stationId": "145003", "regionCode": "QLD"}]))

        assert load_region_mapping(path) == {"145003": "QLD"}
