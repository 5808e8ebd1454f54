"""Time-of-day arithmetic and flight/duty time aggregation for techlog sectors."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from techlog_models import Sector, TechlogEntry, normalize_registration

DUTY_START_BUFFER_MINUTES = 45
DUTY_END_BUFFER_MINUTES = 15

_TIME_OF_DAY_FORMATS = ("%H:%M", "%H:%M:%S")
_REFERENCE_DATE = date(2000, 1, 1)


def parse_time_of_day(value: Optional[str]) -> Optional[time]:
    """Parse an ``HH:MM`` (24h) string, returning ``None`` for blank or bad input."""

    if not value:
        return None
    text = str(value).strip()
    for fmt in _TIME_OF_DAY_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def combine_date_and_time(day: date, value: Optional[str], *, tzinfo=None) -> Optional[datetime]:
    parsed = parse_time_of_day(value)
    if parsed is None:
        return None
    return datetime.combine(day, parsed, tzinfo=tzinfo)


def calculate_flight_time_hours(takeoff_time: Optional[str], landing_time: Optional[str]) -> float:
    """Return the hours between takeoff and landing, wrapping past midnight.

    Blank or unparseable times give ``0.0`` so the entry form never blocks on
    a half-typed value.
    """

    takeoff = combine_date_and_time(_REFERENCE_DATE, takeoff_time)
    landing = combine_date_and_time(_REFERENCE_DATE, landing_time)
    if takeoff is None or landing is None:
        return 0.0
    if landing < takeoff:
        landing += timedelta(days=1)
    return (landing - takeoff).total_seconds() / 3600.0


def calculate_flight_time(sectors: Iterable[Sector]) -> float:
    return sum((sector.flight_time for sector in sectors), 0.0)


def calculate_duty_time(sectors: Sequence[Sector]) -> float:
    """Duty hours from earliest takeoff (+45m) to latest landing (+15m), floored at zero."""

    takeoffs: List[datetime] = []
    landings: List[datetime] = []
    for sector in sectors:
        takeoff = combine_date_and_time(_REFERENCE_DATE, sector.takeoff_time)
        landing = combine_date_and_time(_REFERENCE_DATE, sector.landing_time)
        if takeoff is not None:
            takeoffs.append(takeoff)
        if landing is not None:
            landings.append(landing)

    if not takeoffs or not landings:
        return 0.0

    duty_start = min(takeoffs) + timedelta(minutes=DUTY_START_BUFFER_MINUTES)
    duty_end = max(landings) + timedelta(minutes=DUTY_END_BUFFER_MINUTES)
    return max((duty_end - duty_start).total_seconds() / 3600.0, 0.0)


def earliest_takeoff(sectors: Iterable[Sector]) -> Optional[str]:
    timed = [(parse_time_of_day(sector.takeoff_time), sector.takeoff_time) for sector in sectors]
    timed = [item for item in timed if item[0] is not None]
    if not timed:
        return None
    return min(timed, key=lambda item: item[0])[1]


def latest_landing(sectors: Iterable[Sector]) -> Optional[str]:
    timed = [(parse_time_of_day(sector.landing_time), sector.landing_time) for sector in sectors]
    timed = [item for item in timed if item[0] is not None]
    if not timed:
        return None
    return max(timed, key=lambda item: item[0])[1]


def count_sectors(entries: Iterable[TechlogEntry]) -> int:
    return sum(entry.sector_count for entry in entries)


def sum_entry_flight_time(entries: Iterable[TechlogEntry]) -> float:
    return sum((calculate_flight_time(entry.sectors) for entry in entries), 0.0)


def sum_entry_duty_time(entries: Iterable[TechlogEntry]) -> float:
    """Duty time is evaluated per entry and then summed."""

    return sum((calculate_duty_time(entry.sectors) for entry in entries), 0.0)


_GROUP_KEYS: Dict[str, Callable[[TechlogEntry], List[str]]] = {
    "pilot": lambda entry: [name for name in (entry.pilot_name, entry.co_pilot_name) if name],
    "aircraft": lambda entry: [code for code in (normalize_registration(entry.aircraft_registration),) if code],
    "date": lambda entry: [entry.date] if entry.date else [],
}


def group_sector_totals(entries: Iterable[TechlogEntry], key: str) -> Dict[str, Dict[str, float]]:
    """Flight time and sector totals per pilot, aircraft or date.

    A co-pilot is credited with the whole entry, the same as the commander.
    """

    try:
        key_func = _GROUP_KEYS[key]
    except KeyError:
        raise ValueError(f"Unsupported grouping key: {key!r}") from None

    totals: Dict[str, Dict[str, float]] = defaultdict(lambda: {"flight_time": 0.0, "sectors": 0})
    for entry in entries:
        flight_time = calculate_flight_time(entry.sectors)
        for group in key_func(entry):
            bucket = totals[group]
            bucket["flight_time"] += flight_time
            bucket["sectors"] += entry.sector_count
    return dict(totals)


__all__ = [
    "DUTY_END_BUFFER_MINUTES",
    "DUTY_START_BUFFER_MINUTES",
    "calculate_duty_time",
    "calculate_flight_time",
    "calculate_flight_time_hours",
    "combine_date_and_time",
    "count_sectors",
    "earliest_takeoff",
    "group_sector_totals",
    "latest_landing",
    "parse_time_of_day",
    "sum_entry_duty_time",
    "sum_entry_flight_time",
]
