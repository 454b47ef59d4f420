"""
Atomic Storage Handler

Implements the "write-and-rename" pattern for dataset artifacts.
Ensures that only complete, valid files are ever present in the assets tree.
"""
import os
import json
import uuid
from pathlib import Path
from typing import Dict, Any


def atomic_write_json(data: Any, final_path: Path, indent: int = None) -> None:
    """
    Atomically write JSON data to a file using write-and-rename pattern.

    If the process crashes mid-write, the partial file is left at a temporary
    location and the final path keeps its previous content (or stays absent).

    Args:
        data: JSON-serialisable object
        final_path: Final destination path for the file
        indent: Optional indentation (default: compact output)

    Raises:
        OSError: If the write or rename fails (temp file is cleaned up)
    """
    final_path = Path(final_path)
    final_path.parent.mkdir(parents=True, exist_ok=True)

    # Same directory as the target so the rename stays on one filesystem
    temp_path = final_path.parent / f"{final_path.name}.{uuid.uuid4().hex[:8]}.tmp"

    try:
        with open(temp_path, 'w', encoding='utf-8') as f:
            if indent is None:
                json.dump(data, f, ensure_ascii=False, separators=(',', ':'))
            else:
                json.dump(data, f, ensure_ascii=False, indent=indent)

        os.replace(temp_path, final_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def get_dataset_path(region: str, date_str: str, base_dir: Path = None) -> Path:
    """
    Generate the output path for a region's daily dataset.

    Pattern: data/assets/{region}/{YYYY-MM-DD}.json

    Args:
        region: Region code (e.g., "QLD"), lower-cased in the path
        date_str: Civil date in ISO format (e.g., "2024-05-01")
        base_dir: Base directory for dataset artifacts (default: from config)

    Returns:
        Path object for the output file

    Raises:
        ValueError: If the region code is empty or is not a single path component
    """
    if base_dir is None:
        from .config import ASSETS_DIR
        base_dir = ASSETS_DIR

    region_dir = region.lower()
    if not region_dir or ".." in region_dir or any(sep in region_dir for sep in ("/", "\\")):
        raise ValueError(f"Invalid region code for a dataset path: {region!r}")

    return Path(base_dir) / region_dir / f"{date_str}.json"


def load_json_file(file_path: Path) -> Dict[str, Any]:
    """
    Load a JSON file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed JSON data

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file is not valid JSON
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)
