"""
Dataset Projector

Re-projects one civil day of stored observations into per-region JSON
snapshots. Each station gets six index-aligned arrays (one per observed
field) in ascending observation order. Snapshots are regenerated wholesale
on every run; values are passed through exactly as stored.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from ..config import ASSETS_DIR, TIMEZONE, UNKNOWN_REGION
from ..storage import atomic_write_json, get_dataset_path
from ..store import RecordStore
from ..structured_logger import StructuredLogger
from .day_window import DayWindow, day_window

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

SERIES_FIELDS = [
    "observedAt",
    "heightM",
    "gaugeDatum",
    "tendency",
    "crossingM",
    "floodClassification",
]

STATUS_WRITTEN = "written"
STATUS_NO_DATA = "no_data"


@dataclass
class ProjectionSummary:
    """Outcome of one dataset generation run."""

    status: str
    date: str
    row_count: int = 0
    written: Dict[str, str] = field(default_factory=dict)
    failed_regions: List[str] = field(default_factory=list)
    unknown_stations: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed_regions


def station_key(row: Dict[str, Any]) -> str:
    """Station identifier of a row (station name when the id is missing)."""
    if row.get("id") is not None:
        return str(row["id"])
    return str(row["stationName"])


def build_station_series(
    rows: Iterable[Dict[str, Any]],
    mapping: Dict[str, str],
    unknown_region: str = UNKNOWN_REGION
) -> Dict[str, Dict[str, Dict[str, list]]]:
    """
    Group rows by region, then station, into parallel per-field arrays.

    Rows must already be in ascending observation order; that order is kept.

    Args:
        rows: Store rows keyed by column name
        mapping: Station id -> region code
        unknown_region: Region for stations missing from the mapping

    Returns:
        {region: {station_id: {field: [values...]}}}
    """
    region_data = {}

    for row in rows:
        station = station_key(row)
        region = mapping.get(station, unknown_region)
        stations = region_data.setdefault(region, {})

        series = stations.get(station)
        if series is None:
            series = {field_name: [] for field_name in SERIES_FIELDS}
            stations[station] = series

        for field_name in SERIES_FIELDS:
            series[field_name].append(row.get(field_name))

    return region_data


class DatasetProjector:
    """Writes one snapshot per region for a civil day."""

    def __init__(self, store: RecordStore, output_dir: Path = ASSETS_DIR,
                 tz_name: str = TIMEZONE):
        """
        Args:
            store: Open record store (read only here)
            output_dir: Root of the dataset tree
            tz_name: IANA timezone defining the civil day
        """
        self.store = store
        self.output_dir = Path(output_dir)
        self.tz_name = tz_name

    def project(self, day_offset: int, mapping: Dict[str, str],
                now: Optional[datetime] = None) -> ProjectionSummary:
        """
        Generate the datasets for the day ``day_offset`` days from today.

        Args:
            day_offset: 0 = today, -1 = yesterday, ...
            mapping: Station id -> region code
            now: Current instant (default: system clock)

        Returns:
            ProjectionSummary ("written" or "no_data")

        Raises:
            StoreError: If the window query fails
        """
        start_time = time.time()
        if now is None:
            now = datetime.now(timezone.utc)

        window = day_window(day_offset, now=now, tz_name=self.tz_name)
        logger.info(f"Generating datasets for {window.date_str} ({self.tz_name})")

        rows = self.store.query_window(window.start, window.end)
        summary = ProjectionSummary(status=STATUS_NO_DATA, date=window.date_str,
                                    row_count=len(rows))

        if not rows:
            logger.info(f"No data found for {window.date_str}")
            return summary

        region_data = build_station_series(rows, mapping)
        summary.status = STATUS_WRITTEN
        summary.unknown_stations = self._report_unknown(rows, region_data)

        updated_at = now.astimezone(ZoneInfo(self.tz_name)).isoformat(timespec="seconds")
        for region, stations in region_data.items():
            self._write_region(region, stations, window, updated_at, summary)

        summary.elapsed_seconds = round(time.time() - start_time, 2)
        structured_logger.log_projection_complete(
            date_str=window.date_str,
            row_count=summary.row_count,
            regions_written=len(summary.written),
            regions_failed=len(summary.failed_regions),
            duration_sec=summary.elapsed_seconds
        )
        return summary

    def _report_unknown(self, rows: List[Dict[str, Any]],
                        region_data: Dict[str, Dict[str, Dict[str, list]]]) -> List[str]:
        unknown = list(region_data.get(UNKNOWN_REGION, {}))
        if not unknown:
            return []

        names = {station_key(row): row.get("stationName") for row in rows}
        logger.warning(f"Found {len(unknown)} stations with unknown region")
        for station in unknown:
            logger.warning(f"  - Station {station}: {names.get(station)}")
        return unknown

    def _write_region(self, region: str, stations: Dict[str, Dict[str, list]],
                      window: DayWindow, updated_at: str,
                      summary: ProjectionSummary) -> None:
        """Atomically write one region's snapshot; failures are recorded, not raised."""
        output = {
            "updatedAt": updated_at,
            "date": window.date_str,
            "stations": stations,
        }

        try:
            file_path = get_dataset_path(region, window.date_str, self.output_dir)
            atomic_write_json(output, file_path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {region} dataset for {window.date_str}: {e}")
            summary.failed_regions.append(region)
            return

        summary.written[region] = str(file_path)
        structured_logger.log_dataset_written(
            region=region,
            date_str=window.date_str,
            station_count=len(stations),
            file_path=str(file_path)
        )
