"""
River Data Table Schema

Column names are part of the on-disk contract and stay stable across versions.
"""
from typing import List, Tuple

TABLE_NAME = "river_data"
INDEX_NAME = "idx_timeseries"

# (column, DuckDB type, ObservationRecord field)
SCHEMA_MAPPING: List[Tuple[str, str, str]] = [
    ("id", "VARCHAR", "station_id"),
    ("stationName", "VARCHAR NOT NULL", "station_name"),
    ("stationType", "VARCHAR", "station_type"),
    ("timeDay", "VARCHAR", "time_day"),
    ("observedAt", "VARCHAR NOT NULL", "observed_at"),  # Unique with stationName
    ("issuedAt", "VARCHAR NOT NULL", "issued_at"),
    ("heightM", "DOUBLE", "height_m"),
    ("gaugeDatum", "VARCHAR", "gauge_datum"),
    ("tendency", "VARCHAR", "tendency"),
    ("crossingM", "VARCHAR", "crossing_m"),
    ("floodClassification", "VARCHAR", "flood_classification"),
    ("fetchedAt", "VARCHAR NOT NULL", "fetched_at"),  # Time the row was stored
]

COLUMN_NAMES = [column for column, _, _ in SCHEMA_MAPPING]
RECORD_FIELDS = [field_name for _, _, field_name in SCHEMA_MAPPING]


def create_river_data(connection) -> None:
    """
    Create the river_data table and its time-series index if missing.

    Args:
        connection: Open DuckDB connection
    """
    columns_sql = ",\n  ".join(f"{column} {data_type}" for column, data_type, _ in SCHEMA_MAPPING)

    connection.execute(f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
  {columns_sql},
  UNIQUE (stationName, observedAt)
)""")

    connection.execute(
        f"CREATE INDEX IF NOT EXISTS {INDEX_NAME} ON {TABLE_NAME} (stationName, observedAt)"
    )
