"""
Structured JSON Logging for the river data pipeline

Provides both human-readable console logs and structured JSON logs for analysis.
"""
import json
import logging
import sys
from pathlib import Path
from datetime import datetime, timezone
from typing import Tuple

from .config import LOGS_DIR, LOG_FORMAT, LOG_DATE_FORMAT


class JSONFormatter(logging.Formatter):
    """One JSON object per pipeline event, event name first."""

    def format(self, record: logging.LogRecord) -> str:
        payload = dict(getattr(record, 'extra_data', {}))
        event = {
            "event": payload.pop("event_type", None),
            "at": datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "component": record.name.rsplit(".", 1)[-1],
            "message": record.getMessage(),
        }
        event.update(payload)

        if record.exc_info:
            event["exception"] = self.formatException(record.exc_info)

        return json.dumps(event, default=str)


class StructuredLogger:
    """
    Logger that outputs both human-readable and structured JSON logs.
    """

    _json_log_file = None

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    @classmethod
    def setup_json_logging(cls, log_file: Path) -> None:
        """
        Route structured events from every StructuredLogger to a JSON file.

        Args:
            log_file: Path to JSON log file
        """
        json_handler = logging.FileHandler(log_file)
        json_handler.setLevel(logging.DEBUG)
        json_handler.setFormatter(JSONFormatter())
        json_handler.addFilter(lambda record: hasattr(record, 'extra_data'))

        logging.getLogger().addHandler(json_handler)
        cls._json_log_file = log_file

    def log_event(self, level: str, message: str, **extra_data):
        """
        Log an event with structured data.

        Args:
            level: Log level (INFO, WARNING, ERROR, etc.)
            message: Human-readable message
            **extra_data: Additional structured data to log
        """
        log_method = getattr(self.logger, level.lower())
        extra = {'extra_data': extra_data} if extra_data else {}
        log_method(message, extra=extra)

    def log_resource_fetched(self, name: str, remote_path: str, record_count: int,
                             duration_sec: float):
        """Log a bulletin that was downloaded and parsed."""
        self.log_event(
            'INFO',
            f"Fetched {remote_path} ({record_count} records)",
            event_type="resource_fetched",
            resource_name=name,
            remote_path=remote_path,
            record_count=record_count,
            duration_seconds=round(duration_sec, 2)
        )

    def log_fetch_complete(self, total_resources: int, failed_resources: int,
                           skipped_resources: int, record_count: int,
                           inserted_count: int, status: str, duration_sec: float):
        """
        Log fetch cycle completion with structured data.

        Args:
            total_resources: Catalog entries considered
            failed_resources: Entries whose fetch or parse failed
            skipped_resources: Entries without a remote path
            record_count: Records produced by the parser
            inserted_count: Rows actually inserted (duplicates excluded)
            status: "stored" or "no_records"
            duration_sec: Total time taken
        """
        self.log_event(
            'INFO',
            f"Fetch complete: {inserted_count} new of {record_count} records "
            f"({failed_resources} failed resources)",
            event_type="fetch_complete",
            total_resources=total_resources,
            failed_resources=failed_resources,
            skipped_resources=skipped_resources,
            record_count=record_count,
            inserted_count=inserted_count,
            status=status,
            duration_seconds=round(duration_sec, 2),
            success=failed_resources == 0
        )

    def log_dataset_written(self, region: str, date_str: str, station_count: int,
                            file_path: str):
        """Log a region snapshot that was written to disk."""
        self.log_event(
            'INFO',
            f"Wrote {region} dataset for {date_str} to {file_path}",
            event_type="dataset_written",
            region=region,
            date=date_str,
            station_count=station_count,
            file_path=file_path
        )

    def log_projection_complete(self, date_str: str, row_count: int, regions_written: int,
                                regions_failed: int, duration_sec: float):
        """Log dataset generation completion with structured data."""
        self.log_event(
            'INFO',
            f"Datasets for {date_str}: {regions_written} regions written from {row_count} rows",
            event_type="projection_complete",
            date=date_str,
            row_count=row_count,
            regions_written=regions_written,
            regions_failed=regions_failed,
            duration_seconds=round(duration_sec, 2),
            success=regions_failed == 0
        )


def setup_logging(verbose: bool = False, name: str = "river_data",
                  log_dir: Path = None) -> Tuple[Path, Path]:
    """
    Configure logging for a pipeline command.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO
        name: Prefix for the log file names
        log_dir: Directory for log files (default: from config)

    Returns:
        Tuple of (human log file path, JSON log file path)
    """
    level = logging.DEBUG if verbose else logging.INFO
    log_dir = Path(log_dir) if log_dir is not None else LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = log_dir / f"{name}_{timestamp}.log"
    json_log_file = log_dir / f"{name}_{timestamp}.json"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    logging.getLogger().addHandler(file_handler)

    StructuredLogger.setup_json_logging(json_log_file)

    logging.debug(f"Logging to: {log_file}")
    logging.debug(f"JSON logs: {json_log_file}")

    return log_file, json_log_file
