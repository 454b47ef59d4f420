"""
Dataset Generation

Drives one projection run: loads the station-to-region mapping, opens the
record store, writes the region snapshots for the requested civil day and
closes the store again.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import ASSETS_DIR, DATABASE_FILE, GAUGE_LOCATIONS_FILE, TIMEZONE
from ..store import RecordStore
from .projector import DatasetProjector, ProjectionSummary
from .regions import load_region_mapping

logger = logging.getLogger(__name__)


def generate_datasets(
    day_offset: int = 0,
    db_path: Path = DATABASE_FILE,
    output_dir: Path = ASSETS_DIR,
    mapping_path: Path = GAUGE_LOCATIONS_FILE,
    tz_name: str = TIMEZONE,
    now: Optional[datetime] = None
) -> ProjectionSummary:
    """
    Generate every region's dataset for one civil day.

    Args:
        day_offset: Day relative to today (0, -1, -2, ...)
        db_path: Record store file
        output_dir: Root of the dataset tree
        mapping_path: Gauge locations GeoJSON
        tz_name: Timezone defining the civil day
        now: Current instant (default: system clock)

    Returns:
        ProjectionSummary

    Raises:
        ConfigError: If the region mapping cannot be loaded
        StoreError: If the store cannot be opened or queried
    """
    mapping = load_region_mapping(mapping_path)

    with RecordStore(db_path) as store:
        projector = DatasetProjector(store, output_dir=output_dir, tz_name=tz_name)
        summary = projector.project(day_offset, mapping, now=now)

    if summary.failed_regions:
        logger.warning(f"[WARN] Datasets not written for: {', '.join(summary.failed_regions)}")
    elif summary.written:
        logger.info(f"[OK] {len(summary.written)} datasets written for {summary.date}")

    return summary
