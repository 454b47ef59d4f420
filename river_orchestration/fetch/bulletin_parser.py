"""
River Height Bulletin Parser

Turns a BOM "Latest River Heights" HTML bulletin into observation records.

A bulletin carries one issue line ("Issued at 9:41 am EST on Monday 6 May 2024")
and one or more tables whose header row starts with "Station Name". Readings
only give a time and weekday ("09.00AM Mon"), so the calendar date is resolved
against the issue date.

Any callable ``(text) -> List[ObservationRecord]`` can replace
``parse_river_heights`` in the fetch orchestrator.
"""
import re
from datetime import datetime, timedelta, timezone
from html.parser import HTMLParser
from typing import Callable, Dict, List, Optional

from ..exceptions import ParseError
from ..models import ObservationRecord

BulletinParser = Callable[[str], List[ObservationRecord]]

# Fixed offsets used on BOM bulletins (no DST rules needed: the abbreviation says it)
TIMEZONE_OFFSETS = {
    "EST": timedelta(hours=10), "AEST": timedelta(hours=10),
    "EDT": timedelta(hours=11), "AEDT": timedelta(hours=11),
    "CST": timedelta(hours=9, minutes=30), "ACST": timedelta(hours=9, minutes=30),
    "CDT": timedelta(hours=10, minutes=30), "ACDT": timedelta(hours=10, minutes=30),
    "WST": timedelta(hours=8), "AWST": timedelta(hours=8),
    "UTC": timedelta(0), "GMT": timedelta(0),
}

WEEKDAYS = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}

ISSUED_PATTERN = re.compile(
    r"Issued\s+at\s+(\d{1,2})[:.](\d{2})\s*([ap]\.?m\.?)\s+([A-Z]{3,4})\s+on\s+"
    r"\w+\s+(\d{1,2})\s+(\w+)\s+(\d{4})",
    re.IGNORECASE
)
TIME_DAY_PATTERN = re.compile(r"(\d{1,2})[.:](\d{2})\s*([AP]M)\s+([A-Za-z]{3})", re.IGNORECASE)
STATION_ID_PATTERN = re.compile(r"\.(\d{5,7})\.")

# Header label fragment -> record field
COLUMN_FIELDS = [
    ("station name", "station_name"),
    ("type", "station_type"),
    ("time", "time_day"),
    ("height", "height_m"),
    ("datum", "gauge_datum"),
    ("tendency", "tendency"),
    ("crossing", "crossing_m"),
    ("flood class", "flood_classification"),
]

MISSING_VALUES = {"", "-", "--", "n/a", "na"}


class _TableCollector(HTMLParser):
    """Collects every table as rows of (cell text, cell hrefs)."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.tables = []
        self.text_parts = []
        self._row = None
        self._cell = None

    def handle_starttag(self, tag, attrs):
        if tag == "table":
            self.tables.append([])
        elif tag == "tr" and self.tables:
            self._row = []
        elif tag in ("td", "th") and self._row is not None:
            self._cell = {"text": [], "hrefs": []}
        elif tag == "a" and self._cell is not None:
            href = dict(attrs).get("href")
            if href:
                self._cell["hrefs"].append(href)

    def handle_endtag(self, tag):
        if tag in ("td", "th") and self._cell is not None:
            self._row.append({
                "text": " ".join("".join(self._cell["text"]).split()),
                "hrefs": self._cell["hrefs"],
            })
            self._cell = None
        elif tag == "tr" and self._row is not None:
            if self._row:
                self.tables[-1].append(self._row)
            self._row = None

    def handle_data(self, data):
        self.text_parts.append(data)
        if self._cell is not None:
            self._cell["text"].append(data)


def parse_issued_at(text: str) -> datetime:
    """
    Find the bulletin issue time.

    Args:
        text: Bulletin text (HTML or plain)

    Returns:
        Timezone-aware issue time

    Raises:
        ParseError: If no recognisable issue line is present
    """
    flat = " ".join(text.split())
    match = ISSUED_PATTERN.search(flat)
    if not match:
        raise ParseError("No 'Issued at' line found in bulletin")

    hour, minute, meridiem, zone, day, month, year = match.groups()
    offset = TIMEZONE_OFFSETS.get(zone.upper())
    if offset is None:
        raise ParseError(f"Unknown timezone abbreviation in issue line: {zone}")

    hour = int(hour) % 12 + (12 if meridiem.lower().startswith("p") else 0)
    try:
        issued_date = datetime.strptime(f"{day} {month} {year}", "%d %B %Y")
    except ValueError as e:
        raise ParseError(f"Invalid issue date: {day} {month} {year}") from e

    return issued_date.replace(hour=hour, minute=int(minute), tzinfo=timezone(offset))


def resolve_observed_at(time_day: str, issued_at: datetime) -> Optional[datetime]:
    """
    Resolve a "09.00AM Mon" reading to a full timestamp.

    The reading is placed on the most recent matching weekday on or before the
    issue date, in the issue line's timezone.

    Returns:
        Timezone-aware observation time, or None if ``time_day`` is unreadable
    """
    match = TIME_DAY_PATTERN.search(time_day or "")
    if not match:
        return None

    hour, minute, meridiem, weekday = match.groups()
    weekday_number = WEEKDAYS.get(weekday.lower())
    if weekday_number is None:
        return None

    days_back = (issued_at.weekday() - weekday_number) % 7
    hour = int(hour) % 12 + (12 if meridiem.upper() == "PM" else 0)
    observed = issued_at.replace(hour=hour, minute=int(minute), second=0, microsecond=0)
    return observed - timedelta(days=days_back)


def _header_fields(header_row: List[Dict]) -> Dict[int, str]:
    """Map column positions to record fields from the header labels."""
    positions = {}
    for position, cell in enumerate(header_row):
        label = cell["text"].lower()
        for fragment, field_name in COLUMN_FIELDS:
            if fragment in label and field_name not in positions.values():
                positions[position] = field_name
                break
    return positions


def _clean(value: str) -> Optional[str]:
    if value is None or value.strip().lower() in MISSING_VALUES:
        return None
    return value.strip()


def _parse_height(value: str) -> Optional[float]:
    cleaned = _clean(value)
    if cleaned is None:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def _station_id(row: List[Dict]) -> Optional[str]:
    for cell in row:
        for href in cell["hrefs"]:
            match = STATION_ID_PATTERN.search(href)
            if match:
                return match.group(1)
    return None


def parse_river_heights(text: str) -> List[ObservationRecord]:
    """
    Parse a river height bulletin into observation records.

    Rows without a station name or a readable time are skipped (section
    headings, footnotes). A bulletin with a valid table but no readings
    yields an empty list.

    Args:
        text: Bulletin HTML

    Returns:
        Observation records in bulletin order

    Raises:
        ParseError: If the issue time or the river height table is missing
    """
    issued_at = parse_issued_at(text)

    collector = _TableCollector()
    collector.feed(text)
    collector.close()

    records = []
    found_table = False

    for table in collector.tables:
        positions = {}
        for row in table:
            if row and row[0]["text"].lower().startswith("station name"):
                positions = _header_fields(row)
                found_table = True
                continue
            if not positions:
                continue

            values = {
                field_name: row[position]["text"]
                for position, field_name in positions.items()
                if position < len(row)
            }
            station_name = _clean(values.get("station_name"))
            observed_at = resolve_observed_at(values.get("time_day"), issued_at)
            if not station_name or observed_at is None:
                continue

            records.append(ObservationRecord(
                station_id=_station_id(row),
                station_name=station_name,
                station_type=_clean(values.get("station_type")),
                time_day=_clean(values.get("time_day")),
                observed_at=observed_at.isoformat(),
                issued_at=issued_at.isoformat(),
                height_m=_parse_height(values.get("height_m")),
                gauge_datum=_clean(values.get("gauge_datum")),
                tendency=_clean(values.get("tendency")),
                crossing_m=_clean(values.get("crossing_m")),
                flood_classification=_clean(values.get("flood_classification")),
            ))

    if not found_table:
        raise ParseError("No river height table (header 'Station Name') found in bulletin")

    return records
