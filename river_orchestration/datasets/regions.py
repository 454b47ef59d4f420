"""
Station-to-region mapping

Loaded once per dataset run from the gauge locations GeoJSON
(feature properties ``bom_stn_num`` and ``state``).
"""
import json
import logging
from pathlib import Path
from typing import Dict

from ..config import GAUGE_LOCATIONS_FILE
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


def parse_region_mapping(data) -> Dict[str, str]:
    """
    Build a station id -> region code mapping.

    Accepts a GeoJSON FeatureCollection (``bom_stn_num``/``state`` properties)
    or a list of ``{stationId, regionCode}`` objects. Entries missing either
    value are ignored.

    Raises:
        ConfigError: If the data has neither shape
    """
    if isinstance(data, dict) and "features" in data:
        pairs = [
            ((feature.get("properties") or {}).get("bom_stn_num"),
             (feature.get("properties") or {}).get("state"))
            for feature in data["features"]
        ]
    elif isinstance(data, list):
        pairs = [(entry.get("stationId"), entry.get("regionCode")) for entry in data]
    else:
        raise ConfigError("Region mapping must be a GeoJSON FeatureCollection or a list")

    mapping = {}
    for station_id, region in pairs:
        if station_id and region:
            mapping[str(station_id)] = str(region)
    return mapping


def load_region_mapping(mapping_path: Path = GAUGE_LOCATIONS_FILE) -> Dict[str, str]:
    """
    Load the station-to-region mapping from disk.

    Raises:
        ConfigError: If the file is missing or not valid JSON
    """
    mapping_path = Path(mapping_path)
    if not mapping_path.exists():
        raise ConfigError(f"Gauge locations not found: {mapping_path}")

    try:
        with open(mapping_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Gauge locations {mapping_path} is not valid JSON: {e}") from e

    mapping = parse_region_mapping(data)
    logger.debug(f"Loaded region mapping for {len(mapping)} stations from {mapping_path}")
    return mapping
