"""
Datasets Package

Per-region, per-day JSON snapshots projected from the record store.
"""

from .day_window import DayWindow, day_window
from .orchestrate import generate_datasets
from .projector import DatasetProjector, ProjectionSummary, build_station_series
from .regions import load_region_mapping

__all__ = [
    'DatasetProjector',
    'DayWindow',
    'ProjectionSummary',
    'build_station_series',
    'day_window',
    'generate_datasets',
    'load_region_mapping',
]
