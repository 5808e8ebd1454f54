"""Rolling flight/duty time windows and regulatory limit checks for pilots."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from flight_time_utils import count_sectors, sum_entry_duty_time, sum_entry_flight_time
from techlog_models import Exceedances, PilotStats, TechlogEntry, WindowTotals

ROLLING_WINDOWS: Mapping[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "28d": timedelta(days=28),
    "365d": timedelta(days=365),
}

FLIGHT_TIME_LIMITS: Mapping[str, float] = {"7d": 34, "28d": 100, "365d": 1000}
DUTY_TIME_LIMITS: Mapping[str, float] = {"7d": 55, "28d": 190, "365d": 1800}
SECTOR_LIMITS: Mapping[str, int] = {"24h": 10}


def date_in_window(day: Optional[date], start: datetime, end: datetime) -> bool:
    """True when midnight at the start of ``day`` lies inside ``[start, end]``.

    The midnight instant takes ``end``'s timezone so aware and naive windows
    both work.
    """

    if day is None:
        return False
    instant = datetime.combine(day, time(0, 0), tzinfo=end.tzinfo)
    return start <= instant <= end


def get_entries_in_date_range(
    entries: Iterable[TechlogEntry],
    start: datetime,
    end: datetime,
) -> List[TechlogEntry]:
    return [entry for entry in entries if date_in_window(entry.entry_date, start, end)]


def select_pilot_entries(entries: Iterable[TechlogEntry], pilot_name: str) -> List[TechlogEntry]:
    return [entry for entry in entries if entry.involves_pilot(pilot_name)]


def get_all_pilot_names(entries: Iterable[TechlogEntry]) -> List[str]:
    names = set()
    for entry in entries:
        if entry.pilot_name:
            names.add(entry.pilot_name)
        if entry.co_pilot_name:
            names.add(entry.co_pilot_name)
    return sorted(names)


def compute_window_totals(
    pilot_name: str,
    entries: Sequence[TechlogEntry],
    *,
    now: datetime,
) -> Dict[str, WindowTotals]:
    """Return one :class:`WindowTotals` per entry in :data:`ROLLING_WINDOWS`."""

    pilot_entries = select_pilot_entries(entries, pilot_name)
    totals: Dict[str, WindowTotals] = {}
    for label, length in ROLLING_WINDOWS.items():
        in_window = get_entries_in_date_range(pilot_entries, now - length, now)
        totals[label] = WindowTotals(
            flight_time=sum_entry_flight_time(in_window),
            duty_time=sum_entry_duty_time(in_window),
            sectors=count_sectors(in_window),
        )
    return totals


def is_exceeded(total: float, limit: float) -> bool:
    """A total exactly at the limit is still legal."""

    return total > limit


def classify_exceedances(totals: Mapping[str, WindowTotals]) -> Exceedances:
    empty = WindowTotals()

    def _flight(label: str) -> bool:
        return is_exceeded(totals.get(label, empty).flight_time, FLIGHT_TIME_LIMITS[label])

    def _duty(label: str) -> bool:
        return is_exceeded(totals.get(label, empty).duty_time, DUTY_TIME_LIMITS[label])

    return Exceedances(
        flight_time_7_days=_flight("7d"),
        flight_time_28_days=_flight("28d"),
        flight_time_365_days=_flight("365d"),
        duty_time_7_days=_duty("7d"),
        duty_time_28_days=_duty("28d"),
        duty_time_365_days=_duty("365d"),
        sectors_24_hours=is_exceeded(totals.get("24h", empty).sectors, SECTOR_LIMITS["24h"]),
    )


def calculate_pilot_stats(
    pilot_name: str,
    entries: Sequence[TechlogEntry],
    *,
    now: datetime,
) -> PilotStats:
    totals = compute_window_totals(pilot_name, entries, now=now)
    return PilotStats(
        pilot_name=pilot_name,
        flight_time_7_days=totals["7d"].flight_time,
        flight_time_28_days=totals["28d"].flight_time,
        flight_time_365_days=totals["365d"].flight_time,
        duty_time_7_days=totals["7d"].duty_time,
        duty_time_28_days=totals["28d"].duty_time,
        duty_time_365_days=totals["365d"].duty_time,
        sectors_24_hours=totals["24h"].sectors,
        sectors_7_days=totals["7d"].sectors,
        sectors_28_days=totals["28d"].sectors,
        sectors_365_days=totals["365d"].sectors,
        exceedances=classify_exceedances(totals),
    )


def calculate_all_pilot_stats(entries: Sequence[TechlogEntry], *, now: datetime) -> List[PilotStats]:
    return [calculate_pilot_stats(name, entries, now=now) for name in get_all_pilot_names(entries)]


__all__ = [
    "DUTY_TIME_LIMITS",
    "FLIGHT_TIME_LIMITS",
    "ROLLING_WINDOWS",
    "SECTOR_LIMITS",
    "calculate_all_pilot_stats",
    "calculate_pilot_stats",
    "classify_exceedances",
    "compute_window_totals",
    "date_in_window",
    "get_all_pilot_names",
    "get_entries_in_date_range",
    "is_exceeded",
    "select_pilot_entries",
]
