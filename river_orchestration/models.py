"""
Observation Record Model

One gauge reading from a river height bulletin. Records are produced by the
bulletin parser; the record store stamps ``fetchedAt`` when it writes them.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ObservationRecord:
    """
    A single river height observation.

    Timestamps are ISO-8601 strings carrying a UTC offset
    (e.g. "2024-05-01T09:00:00+10:00").
    """

    station_name: str
    observed_at: str
    issued_at: str
    station_id: Optional[str] = None
    station_type: Optional[str] = None
    time_day: Optional[str] = None
    height_m: Optional[float] = None
    gauge_datum: Optional[str] = None
    tendency: Optional[str] = None
    crossing_m: Optional[str] = None
    flood_classification: Optional[str] = None
    fetched_at: Optional[str] = field(default=None, compare=False)
