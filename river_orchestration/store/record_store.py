"""
Record Store - DuckDB-backed observation history

Single source of truth for river height readings:
- One table, unique on (stationName, observedAt)
- Idempotent batch appends (INSERT OR IGNORE, one transaction per batch)
- Time-window range scans for the dataset projector

The store is opened and closed explicitly by whoever drives the cycle and is
passed to the fetch orchestrator and the dataset projector.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import duckdb

from ..config import DATABASE_FILE
from ..exceptions import StoreError, ValidationError
from ..models import ObservationRecord
from .schema import COLUMN_NAMES, RECORD_FIELDS, SCHEMA_MAPPING, TABLE_NAME, create_river_data

logger = logging.getLogger(__name__)

RecordLike = Union[ObservationRecord, Mapping[str, Any]]

STATION_NAME_INDEX = COLUMN_NAMES.index("stationName")
OBSERVED_AT_INDEX = COLUMN_NAMES.index("observedAt")

# Columns read back by the projector, in output order
WINDOW_COLUMNS = [
    "id", "stationName", "observedAt", "heightM",
    "gaugeDatum", "tendency", "crossingM", "floodClassification"
]


@dataclass(frozen=True)
class AppendResult:
    """Outcome of one append_records call."""

    inserted: int
    duplicates: int
    invalid: int
    fetched_at: Optional[str] = None

    @property
    def received(self) -> int:
        return self.inserted + self.duplicates + self.invalid


def _field_value(record: RecordLike, field_name: str, column: str) -> Any:
    """Read a field from a record object or a dict (snake_case or column name)."""
    if isinstance(record, ObservationRecord):
        return getattr(record, field_name)
    if field_name in record:
        return record[field_name]
    return record.get(column)


def _coerce_height(value: Any, station_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"non-numeric height {value!r} for {station_name}") from e


def record_to_row(record: RecordLike, fetched_at: str) -> tuple:
    """
    Validate a record and convert it to a row in column order.

    Raises:
        ValidationError: If station name, observation or issue time is missing,
            or the height is not numeric
    """
    values = {
        field_name: _field_value(record, field_name, column)
        for column, _, field_name in SCHEMA_MAPPING
    }

    if not values["station_name"] or not values["observed_at"]:
        raise ValidationError("missing stationName or observedAt")
    if not values["issued_at"]:
        raise ValidationError(f"missing issuedAt for {values['station_name']}")

    values["height_m"] = _coerce_height(values["height_m"], values["station_name"])
    values["fetched_at"] = fetched_at
    if values["station_id"] is not None:
        values["station_id"] = str(values["station_id"])

    return tuple(values[field_name] for field_name in RECORD_FIELDS)


class RecordStore:
    """
    Durable observation table in a single DuckDB file.

    Usage:
        with RecordStore(path) as store:
            store.append_records(records)
    """

    def __init__(self, db_path: Union[str, Path] = DATABASE_FILE):
        """
        Args:
            db_path: DuckDB database file (created if absent)
        """
        self.db_path = Path(db_path)
        self._connection = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self) -> "RecordStore":
        """
        Open (creating if absent) the database and ensure the schema exists.

        Idempotent: a second call reuses the live connection.

        Returns:
            The store itself

        Raises:
            StoreError: If the file cannot be opened or the schema created
        """
        with self._lock:
            if self._connection is not None:
                return self

            connection = None
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                connection = duckdb.connect(str(self.db_path))
                create_river_data(connection)
            except (duckdb.Error, OSError) as e:
                logger.error(f"Fatal error during database initialization: {e}")
                if connection is not None:
                    connection.close()
                raise StoreError(f"Could not open record store {self.db_path}: {e}") from e

            self._connection = connection

        logger.info(f"Database '{self.db_path}' loaded")
        return self

    def close(self) -> None:
        """Close the database connection. Safe to call more than once."""
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None

        logger.info("Database connection closed")

    def __enter__(self) -> "RecordStore":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _require_connection(self):
        if self._connection is None:
            raise StoreError(f"Record store {self.db_path} is not open")
        return self._connection

    def append_records(self, records: Iterable[RecordLike],
                       fetched_at: Optional[str] = None) -> AppendResult:
        """
        Append observation records, ignoring (stationName, observedAt) duplicates.

        Invalid records (no station name, observation or issue time, or a
        non-numeric height) are skipped with a warning. Every stored row of
        the batch gets the same ``fetchedAt``. Calling this repeatedly with
        overlapping batches stores each logical record at most once.

        Args:
            records: ObservationRecord objects or equivalent dicts
            fetched_at: Ingestion timestamp (default: now, UTC)

        Returns:
            AppendResult with inserted/duplicate/invalid counts

        Raises:
            StoreError: If the batch cannot be written (transaction rolled back)
        """
        if fetched_at is None:
            fetched_at = datetime.now(timezone.utc).isoformat()

        rows = []
        seen_keys = set()
        duplicates_in_batch = 0
        invalid = 0
        for record in records:
            try:
                row = record_to_row(record, fetched_at)
            except ValidationError as e:
                invalid += 1
                logger.warning(f"Skipping invalid record: {e}")
                continue

            key = (row[STATION_NAME_INDEX], row[OBSERVED_AT_INDEX])
            if key in seen_keys:
                duplicates_in_batch += 1
                continue
            seen_keys.add(key)
            rows.append(row)

        if not rows:
            logger.debug("No valid records to append")
            return AppendResult(inserted=0, duplicates=duplicates_in_batch, invalid=invalid,
                                fetched_at=fetched_at)

        placeholders = ", ".join("?" for _ in COLUMN_NAMES)
        insert_sql = (
            f"INSERT OR IGNORE INTO {TABLE_NAME} ({', '.join(COLUMN_NAMES)}) "
            f"VALUES ({placeholders})"
        )
        count_sql = f"SELECT count(*) FROM {TABLE_NAME}"

        with self._lock:
            connection = self._require_connection()
            try:
                connection.begin()
                before = connection.execute(count_sql).fetchone()[0]
                connection.executemany(insert_sql, rows)
                after = connection.execute(count_sql).fetchone()[0]
                connection.commit()
            except duckdb.Error as e:
                try:
                    connection.rollback()
                except duckdb.Error as rollback_error:
                    logger.debug(f"Rollback after failed append: {rollback_error}")
                logger.error(f"An error occurred during data append: {e}")
                raise StoreError(f"Append of {len(rows)} records failed: {e}") from e

        inserted = after - before
        if inserted > 0:
            logger.info(f"Successfully appended {inserted} new records to database")
        else:
            logger.debug("No new records to append (all duplicates or empty)")

        return AppendResult(
            inserted=inserted,
            duplicates=len(rows) - inserted + duplicates_in_batch,
            invalid=invalid,
            fetched_at=fetched_at
        )

    def query_window(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """
        Read every observation with ``start <= observedAt < end``.

        Rows come back ascending by observation instant (ties by station name).
        Rows whose observedAt cannot be read as a timestamp never match.

        Args:
            start: Window start (timezone-aware)
            end: Window end, exclusive (timezone-aware)

        Returns:
            List of row dicts keyed by column name

        Raises:
            StoreError: If the query fails
        """
        observed = "TRY_CAST(observedAt AS TIMESTAMPTZ)"
        sql = f"""
    SELECT {', '.join(WINDOW_COLUMNS)}
    FROM {TABLE_NAME}
    WHERE {observed} >= CAST(? AS TIMESTAMPTZ)
      AND {observed} < CAST(? AS TIMESTAMPTZ)
    ORDER BY {observed} ASC, stationName ASC
    """
        params = [
            start.astimezone(timezone.utc).isoformat(),
            end.astimezone(timezone.utc).isoformat(),
        ]

        with self._lock:
            connection = self._require_connection()
            try:
                result = connection.execute(sql, params).fetchall()
            except duckdb.Error as e:
                raise StoreError(f"Window query failed: {e}") from e

        return [dict(zip(WINDOW_COLUMNS, row)) for row in result]

    def count(self) -> int:
        """Total number of stored observations."""
        with self._lock:
            connection = self._require_connection()
            try:
                return connection.execute(f"SELECT count(*) FROM {TABLE_NAME}").fetchone()[0]
            except duckdb.Error as e:
                raise StoreError(f"Count query failed: {e}") from e
