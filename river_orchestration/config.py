"""
Configuration for the river data pipeline

Simple module-level settings read from the environment (and the project .env).
Functions elsewhere take explicit parameters that default to these values.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

from .exceptions import ConfigError

# Get project root (2 levels up: river_orchestration -> project_root)
PROJECT_ROOT = Path(__file__).parent.parent.absolute()

# Load environment variables
load_dotenv(PROJECT_ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    """
    Read a positive integer setting from the environment.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset

    Returns:
        Parsed integer

    Raises:
        ConfigError: If the value is not a positive integer
    """
    raw_value = os.getenv(name)
    if raw_value is None or raw_value == "":
        return default
    try:
        value = int(raw_value)
    except ValueError as e:
        raise ConfigError(f"Invalid {name} value: expected integer, got '{raw_value}'") from e
    if value < 1:
        raise ConfigError(f"Invalid {name} value: must be at least 1, got {value}")
    return value


# FTP Configuration (BOM anonymous FTP; absence of a password still allows guest access)
FTP_HOST = os.getenv("BOM_FTP_HOST", "ftp.bom.gov.au")
FTP_USER = os.getenv("BOM_FTP_USER", "anonymous")
FTP_PASSWORD = os.getenv("BOM_FTP_PASSWORD") or "guest"
FTP_DIRECTORY = os.getenv("BOM_FTP_DIRECTORY", "anon/gen/fwo")
FTP_TIMEOUT = _env_int("BOM_FTP_TIMEOUT", 60)  # seconds

# Concurrency Settings (number of simultaneous FTP sessions)
FTP_CONCURRENCY = _env_int("BOM_FTP_CONCURRENCY", 3)

# Retry Configuration (transient FTP replies only)
MAX_RETRIES = _env_int("BOM_FTP_MAX_RETRIES", 3)
RETRY_INITIAL_WAIT = 1  # seconds
RETRY_MAX_WAIT = 10  # seconds
RETRY_MULTIPLIER = 2  # exponential backoff multiplier

# Civil timezone used for dataset days
TIMEZONE = "Australia/Brisbane"
UNKNOWN_REGION = "UNKNOWN"

# Paths
BASE_DATA_DIR = PROJECT_ROOT / "data"
METADATA_DIR = PROJECT_ROOT / "metadata"
LOGS_DIR = PROJECT_ROOT / "logs"

DATABASE_FILE = Path(os.getenv("RIVER_DATABASE_FILE", BASE_DATA_DIR / "rivers.duckdb"))
ASSETS_DIR = Path(os.getenv("RIVER_ASSETS_DIR", BASE_DATA_DIR / "assets"))
CATALOG_FILE = Path(os.getenv("RIVER_CATALOG_FILE", METADATA_DIR / "bom_products.json"))
GAUGE_LOCATIONS_FILE = Path(
    os.getenv("RIVER_GAUGE_LOCATIONS_FILE", BASE_DATA_DIR / "gauge-locations.json")
)
GAUGE_LOCATIONS_MINIMAL_FILE = BASE_DATA_DIR / "gauge-locations-minimal.json"

# Logging Configuration
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
