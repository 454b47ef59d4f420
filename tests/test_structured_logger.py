"""
Tests for the JSON event log.
"""
import json
import logging

from river_orchestration.structured_logger import JSONFormatter, StructuredLogger


class TestJSONFormatter:
    """Event lines written to the JSON log file."""

    def test_event_fields(self):
        record = logging.LogRecord(
            "river_orchestration.fetch.orchestrate", logging.INFO, __file__, 1,
            "Fetch complete", None, None
        )
        record.extra_data = {"event_type": "fetch_complete", "inserted_count": 4}

        line = json.loads(JSONFormatter().format(record))

        assert line["event"] == "fetch_complete"
        assert line["component"] == "orchestrate"
        assert line["inserted_count"] == 4
        assert line["at"].endswith("+00:00")
        assert "event_type" not in line

    def test_structured_logger_attaches_payload(self, caplog):
        events = StructuredLogger("river_orchestration.datasets.projector")

        with caplog.at_level(logging.INFO):
            events.log_dataset_written(region="QLD", date_str="2024-05-07", station_count=3,
                                       file_path="data/assets/qld/2024-05-07.json")

        record = caplog.records[-1]
        assert record.extra_data["event_type"] == "dataset_written"
        line = json.loads(JSONFormatter().format(record))
        assert line["region"] == "QLD"
        assert line["station_count"] == 3
