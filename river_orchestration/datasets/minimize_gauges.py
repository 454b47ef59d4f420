"""
Gauge Locations Minimiser

Strips the gauge locations GeoJSON down to what map clients need
(id, name, basin), sorts features by basin and writes it without
indentation.
"""
import logging
from pathlib import Path

from ..config import GAUGE_LOCATIONS_FILE, GAUGE_LOCATIONS_MINIMAL_FILE
from ..exceptions import ConfigError
from ..storage import atomic_write_json, load_json_file

logger = logging.getLogger(__name__)


def minimize_geojson(geojson: dict) -> dict:
    """
    Keep only id/name/basin properties and sort features by basin.

    Feature ``id`` members are dropped; the BOM station number becomes the
    ``id`` property.
    """
    features = [
        {
            "type": feature.get("type"),
            "geometry": feature.get("geometry"),
            "properties": {
                "id": (feature.get("properties") or {}).get("bom_stn_num"),
                "name": (feature.get("properties") or {}).get("name"),
                "basin": (feature.get("properties") or {}).get("basin"),
            },
        }
        for feature in geojson.get("features", [])
    ]
    features.sort(key=lambda feature: feature["properties"]["basin"] or "")

    minimized = dict(geojson)
    minimized["features"] = features
    return minimized


def minimize_gauge_locations(input_path: Path = GAUGE_LOCATIONS_FILE,
                             output_path: Path = GAUGE_LOCATIONS_MINIMAL_FILE) -> int:
    """
    Write the minimised gauge locations file.

    Returns:
        Number of features written

    Raises:
        ConfigError: If the input file is missing or not a FeatureCollection
    """
    input_path = Path(input_path)
    logger.info(f"Reading gauge data from {input_path}...")

    try:
        geojson = load_json_file(input_path)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to read gauge locations {input_path}: {e}") from e

    if not isinstance(geojson, dict) or "features" not in geojson:
        raise ConfigError(f"{input_path} is not a GeoJSON FeatureCollection")

    minimized = minimize_geojson(geojson)

    logger.info(f"Writing minimized data to {output_path}...")
    atomic_write_json(minimized, Path(output_path))

    logger.info("Successfully minimized and sorted gauge locations.")
    return len(minimized["features"])
