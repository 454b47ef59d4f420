"""
Fetch Orchestrator

Parallel retrieval of every catalog bulletin through the FTP session pool.
Each resource is fetched and parsed in its own task; a failing resource is
logged and contributes zero records instead of aborting the batch. All
records are then appended to the record store in one call.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config import (
    CATALOG_FILE,
    DATABASE_FILE,
    FTP_CONCURRENCY,
    FTP_DIRECTORY,
    FTP_HOST,
    FTP_PASSWORD,
    FTP_USER
)
from ..exceptions import ParseError, TransferError
from ..models import ObservationRecord
from ..store import RecordStore
from ..structured_logger import StructuredLogger
from .bulletin_parser import BulletinParser, parse_river_heights
from .catalog import RemoteResource, load_catalog
from .ftp_pool import FtpSessionPool, default_session_factory

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

STATUS_STORED = "stored"
STATUS_NO_RECORDS = "no_records"


@dataclass
class FetchSummary:
    """Outcome of one fetch cycle."""

    status: str
    total_resources: int
    skipped_resources: List[str] = field(default_factory=list)
    failed_resources: List[str] = field(default_factory=list)
    record_count: int = 0
    inserted_count: int = 0
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed_resources


class FetchOrchestrator:
    """
    Fans catalog entries out over the session pool and stores the results.

    The pool caps simultaneous transfers; the thread pool here only bounds
    how many fetch requests wait on it at once.
    """

    def __init__(self, pool: FtpSessionPool, store: RecordStore,
                 parser: BulletinParser = parse_river_heights,
                 max_workers: Optional[int] = None):
        """
        Args:
            pool: Open FTP session pool
            store: Open record store
            parser: Bulletin text -> records
            max_workers: Concurrent fetch requests (default: one per resource)
        """
        self.pool = pool
        self.store = store
        self.parser = parser
        self.max_workers = max_workers

    def fetch_resource(self, resource: RemoteResource) -> List[ObservationRecord]:
        """
        Fetch and parse a single catalog entry.

        Raises:
            TransferError: If the download fails
            ParseError: If the parser rejects the payload
        """
        start_time = time.time()
        text = self.pool.fetch(resource.remote_path)
        logger.info(f"Fetched {resource.remote_path}...")

        try:
            records = list(self.parser(text))
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(f"{type(e).__name__}: {e}") from e

        structured_logger.log_resource_fetched(
            name=resource.name,
            remote_path=resource.remote_path,
            record_count=len(records),
            duration_sec=time.time() - start_time
        )
        return records

    def run(self, catalog: List[RemoteResource]) -> FetchSummary:
        """
        Fetch every configured catalog entry and append the records.

        Args:
            catalog: Catalog entries; entries without a remote path are skipped

        Returns:
            FetchSummary (status "stored" or "no_records")

        Raises:
            StoreError: If the batch append fails
        """
        start_time = time.time()
        summary = FetchSummary(status=STATUS_NO_RECORDS, total_resources=len(catalog))

        resources = []
        for resource in catalog:
            if resource.is_configured:
                resources.append(resource)
            else:
                logger.debug(f"Skipping {resource.name}: no remote path configured")
                summary.skipped_resources.append(resource.name)

        all_records = []
        if resources:
            max_workers = self.max_workers or len(resources)
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_resource = {
                    executor.submit(self.fetch_resource, resource): resource
                    for resource in resources
                }

                for future in as_completed(future_to_resource):
                    resource = future_to_resource[future]
                    try:
                        all_records.extend(future.result())
                    except (TransferError, ParseError) as e:
                        logger.error(f"Failed to process {resource.name} ({resource.remote_path}): {e}")
                        summary.failed_resources.append(resource.name)
                    except Exception as e:
                        logger.error(f"[FAIL] {resource.name} ({resource.remote_path}) crashed: {e}")
                        summary.failed_resources.append(resource.name)

        summary.record_count = len(all_records)

        if all_records:
            result = self.store.append_records(all_records)
            summary.status = STATUS_STORED
            summary.inserted_count = result.inserted
        else:
            logger.info("No records found to process.")

        summary.elapsed_seconds = round(time.time() - start_time, 2)

        if summary.failed_resources:
            logger.warning(f"[WARN] Failed resources: {', '.join(summary.failed_resources)}")

        structured_logger.log_fetch_complete(
            total_resources=summary.total_resources,
            failed_resources=len(summary.failed_resources),
            skipped_resources=len(summary.skipped_resources),
            record_count=summary.record_count,
            inserted_count=summary.inserted_count,
            status=summary.status,
            duration_sec=summary.elapsed_seconds
        )

        return summary


def run_fetch_cycle(
    catalog_path: Path = CATALOG_FILE,
    db_path: Path = DATABASE_FILE,
    host: str = FTP_HOST,
    user: str = FTP_USER,
    password: str = FTP_PASSWORD,
    directory: str = FTP_DIRECTORY,
    concurrency: int = FTP_CONCURRENCY,
    parser: BulletinParser = parse_river_heights,
    session_factory=default_session_factory
) -> FetchSummary:
    """
    One complete fetch cycle: catalog -> FTP pool -> parser -> record store.

    The store and the pool are owned here and closed before returning.

    Raises:
        ConfigError: If the catalog cannot be loaded
        RemoteConnectionError: If the FTP pool cannot be opened
        StoreError: If the store cannot be opened or appended to
    """
    catalog = load_catalog(catalog_path)

    logger.info("=" * 80)
    logger.info("RIVER HEIGHTS FETCH")
    logger.info("=" * 80)
    logger.info(f"Catalog: {len(catalog)} products ({catalog_path})")
    logger.info(f"Server: {host}/{directory} ({concurrency} sessions)")

    with RecordStore(db_path) as store:
        with FtpSessionPool.open(
            host=host,
            user=user,
            password=password,
            concurrency=concurrency,
            directory=directory,
            session_factory=session_factory
        ) as pool:
            orchestrator = FetchOrchestrator(pool, store, parser=parser)
            summary = orchestrator.run(catalog)

    logger.info("=" * 80)
    logger.info(f"Products: {summary.total_resources} "
                f"({len(summary.skipped_resources)} skipped, {len(summary.failed_resources)} failed)")
    logger.info(f"Records: {summary.record_count} parsed, {summary.inserted_count} new")
    logger.info(f"Total time: {summary.elapsed_seconds:.1f}s")
    logger.info("=" * 80)

    return summary
