"""
Remote Resource Catalog

Static list of BOM bulletin products to fetch on every cycle.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config import CATALOG_FILE
from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteResource:
    """A named remote file. An empty ``remote_path`` means "not configured"."""

    name: str
    remote_path: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.remote_path and self.remote_path.strip())


def parse_catalog(entries: List[dict]) -> List[RemoteResource]:
    """
    Build catalog entries from decoded JSON.

    Each entry needs a ``name``; the remote path is read from ``remotePath``
    or, for older catalogs, ``filename``.

    Args:
        entries: List of catalog objects

    Returns:
        Catalog in file order

    Raises:
        ConfigError: If the catalog is not a list of named objects
    """
    if not isinstance(entries, list):
        raise ConfigError("Catalog must be a JSON array of {name, remotePath} objects")

    catalog = []
    for position, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigError(f"Catalog entry {position} is not an object: {entry!r}")

        remote_path = entry.get("remotePath", entry.get("filename"))
        name = entry.get("name") or remote_path
        if not name:
            raise ConfigError(f"Catalog entry {position} has neither a name nor a remote path")

        catalog.append(RemoteResource(name=str(name), remote_path=remote_path or None))

    return catalog


def load_catalog(catalog_path: Path = CATALOG_FILE) -> List[RemoteResource]:
    """
    Load the product catalog from a JSON file.

    Args:
        catalog_path: Path to the catalog JSON

    Returns:
        Catalog in file order

    Raises:
        ConfigError: If the file is missing or invalid
    """
    catalog_path = Path(catalog_path)
    if not catalog_path.exists():
        raise ConfigError(f"Product catalog not found: {catalog_path}")

    try:
        with open(catalog_path, 'r', encoding='utf-8') as f:
            entries = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Product catalog {catalog_path} is not valid JSON: {e}") from e

    catalog = parse_catalog(entries)
    logger.debug(f"Loaded {len(catalog)} catalog entries from {catalog_path}")
    return catalog
