"""Table builders for the crew, aircraft and techlog dashboards."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from flight_time_utils import calculate_flight_time
from techlog_models import AircraftStats, DailyDutySummary, PilotStats, RestPeriod, TechlogEntry

PILOT_STATS_COLUMNS = [
    "Pilot",
    "Flight 7d (h)",
    "Flight 28d (h)",
    "Flight 365d (h)",
    "Duty 7d (h)",
    "Duty 28d (h)",
    "Duty 365d (h)",
    "Sectors 24h",
    "Sectors 7d",
    "Sectors 28d",
    "Sectors 365d",
    "Exceedance",
]

DAILY_DETAIL_COLUMNS = [
    "Date",
    "Route",
    "Sectors",
    "First takeoff",
    "Last landing",
    "Flight time (h)",
    "Duty time (h)",
    "Overnight",
]

REST_PERIOD_COLUMNS = ["From", "To", "Rest start", "Rest end", "Rest (h)", "Compliant"]

AIRCRAFT_STATS_COLUMNS = ["Registration", "Total cycles", "Total flight hours", "Last updated"]

TECHLOG_SUMMARY_COLUMNS = [
    "Date",
    "Techlog",
    "Registration",
    "Pilot",
    "Co-pilot",
    "Sectors",
    "Flight time (h)",
]

SECTOR_COLUMNS = ["Departure", "Arrival", "Takeoff", "Landing", "Flight time (h)"]

RECENT_ACTIVITY_LIMIT = 5

_TECHLOG_SORT_KEYS = {
    "date": "_date_sort",
    "techlog_number": "Techlog",
    "aircraft_registration": "Registration",
    "pilot_name": "Pilot",
    "co_pilot_name": "Co-pilot",
    "sectors": "Sectors",
    "flight_time": "Flight time (h)",
}


def filter_pilot_stats(stats: Iterable[PilotStats], search: str = "") -> List[PilotStats]:
    needle = (search or "").strip().lower()
    if not needle:
        return list(stats)
    return [item for item in stats if needle in item.pilot_name.lower()]


def build_pilot_stats_frame(stats: Sequence[PilotStats]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for item in stats:
        rows.append(
            {
                "Pilot": item.pilot_name,
                "Flight 7d (h)": round(item.flight_time_7_days, 1),
                "Flight 28d (h)": round(item.flight_time_28_days, 1),
                "Flight 365d (h)": round(item.flight_time_365_days, 1),
                "Duty 7d (h)": round(item.duty_time_7_days, 1),
                "Duty 28d (h)": round(item.duty_time_28_days, 1),
                "Duty 365d (h)": round(item.duty_time_365_days, 1),
                "Sectors 24h": item.sectors_24_hours,
                "Sectors 7d": item.sectors_7_days,
                "Sectors 28d": item.sectors_28_days,
                "Sectors 365d": item.sectors_365_days,
                "Exceedance": item.has_exceedance,
            }
        )
    return pd.DataFrame(rows, columns=PILOT_STATS_COLUMNS)


def build_exceedance_frame(stats: Sequence[PilotStats]) -> pd.DataFrame:
    """One boolean column per limit, for highlighting on the limits tabs."""

    rows = [{"Pilot": item.pilot_name, **item.exceedances.as_dict()} for item in stats]
    columns = ["Pilot"] + list(PilotStats(pilot_name="").exceedances.as_dict().keys())
    return pd.DataFrame(rows, columns=columns)


def _route_label(summary: DailyDutySummary) -> str:
    if not summary.sectors:
        return ""
    stops = [summary.sectors[0].departure] + [sector.arrival for sector in summary.sectors]
    return " → ".join(stops)


def build_daily_details_frame(daily: Sequence[DailyDutySummary]) -> pd.DataFrame:
    rows = [
        {
            "Date": summary.date,
            "Route": _route_label(summary),
            "Sectors": summary.sector_count,
            "First takeoff": summary.earliest_takeoff or "",
            "Last landing": summary.latest_landing or "",
            "Flight time (h)": round(summary.total_flight_time, 2),
            "Duty time (h)": round(summary.duty_time, 2),
            "Overnight": summary.is_overnight,
        }
        for summary in daily
    ]
    return pd.DataFrame(rows, columns=DAILY_DETAIL_COLUMNS)


def build_rest_period_frame(periods: Sequence[RestPeriod]) -> pd.DataFrame:
    rows = [
        {
            "From": period.from_date,
            "To": period.to_date,
            "Rest start": period.start.strftime("%Y-%m-%d %H:%M"),
            "Rest end": period.end.strftime("%Y-%m-%d %H:%M"),
            "Rest (h)": round(period.hours, 2),
            "Compliant": period.is_compliant,
        }
        for period in periods
    ]
    return pd.DataFrame(rows, columns=REST_PERIOD_COLUMNS)


def build_aircraft_stats_frame(stats: Sequence[AircraftStats]) -> pd.DataFrame:
    rows = [
        {
            "Registration": item.registration,
            "Total cycles": item.total_cycles,
            "Total flight hours": round(item.total_flight_hours, 1),
            "Last updated": item.last_updated.strftime("%Y-%m-%d %H:%M") if item.last_updated else "",
        }
        for item in stats
    ]
    return pd.DataFrame(rows, columns=AIRCRAFT_STATS_COLUMNS)


def summarize_fleet(stats: Sequence[AircraftStats]) -> Dict[str, float]:
    """Fleet-wide totals; the average is per aircraft, not per cycle."""

    total_hours = sum((item.total_flight_hours for item in stats), 0.0)
    return {
        "total_aircraft": len(stats),
        "total_cycles": sum(item.total_cycles for item in stats),
        "total_flight_hours": total_hours,
        "average_hours_per_aircraft": total_hours / len(stats) if stats else 0.0,
    }


def build_recent_activity_frame(
    stats: Sequence[AircraftStats],
    limit: int = RECENT_ACTIVITY_LIMIT,
) -> pd.DataFrame:
    """The ``limit`` most recently updated aircraft, newest first."""

    dated = [item for item in stats if item.last_updated is not None]
    dated.sort(key=lambda item: item.last_updated.timestamp(), reverse=True)
    return build_aircraft_stats_frame(dated[:limit])


def filter_techlog_entries(entries: Iterable[TechlogEntry], search: str = "") -> List[TechlogEntry]:
    """Case-insensitive match on techlog number, registration, pilot, co-pilot or date."""

    needle = (search or "").strip().lower()
    if not needle:
        return list(entries)

    matches: List[TechlogEntry] = []
    for entry in entries:
        haystack = (
            entry.techlog_number,
            entry.aircraft_registration,
            entry.pilot_name,
            entry.co_pilot_name or "",
            entry.date,
        )
        if any(needle in value.lower() for value in haystack):
            matches.append(entry)
    return matches


def build_techlog_summary_frame(
    entries: Sequence[TechlogEntry],
    *,
    search: str = "",
    sort_by: str = "date",
    ascending: bool = False,
) -> pd.DataFrame:
    try:
        sort_column = _TECHLOG_SORT_KEYS[sort_by]
    except KeyError:
        raise ValueError(f"Unsupported sort column: {sort_by!r}") from None

    rows = [
        {
            "Date": entry.date,
            "Techlog": entry.techlog_number,
            "Registration": entry.aircraft_registration,
            "Pilot": entry.pilot_name,
            "Co-pilot": entry.co_pilot_name or "",
            "Sectors": entry.sector_count,
            "Flight time (h)": round(calculate_flight_time(entry.sectors), 2),
            "_id": entry.id,
            "_date_sort": pd.to_datetime(entry.date, errors="coerce"),
        }
        for entry in filter_techlog_entries(entries, search)
    ]
    if not rows:
        return pd.DataFrame(columns=TECHLOG_SUMMARY_COLUMNS + ["_id"])

    frame = pd.DataFrame(rows)
    frame = frame.sort_values(
        by=sort_column,
        ascending=ascending,
        kind="stable",
        na_position="last",
        key=lambda column: column.str.lower() if pd.api.types.is_string_dtype(column) else column,
    )
    return frame.drop(columns=["_date_sort"]).reset_index(drop=True)


def build_sector_frame(entry: Optional[TechlogEntry]) -> pd.DataFrame:
    if entry is None:
        return pd.DataFrame(columns=SECTOR_COLUMNS)
    rows = [
        {
            "Departure": sector.departure,
            "Arrival": sector.arrival,
            "Takeoff": sector.takeoff_time,
            "Landing": sector.landing_time,
            "Flight time (h)": round(sector.flight_time, 2),
        }
        for sector in entry.sectors
    ]
    return pd.DataFrame(rows, columns=SECTOR_COLUMNS)


__all__ = [
    "build_aircraft_stats_frame",
    "build_daily_details_frame",
    "build_exceedance_frame",
    "build_pilot_stats_frame",
    "build_recent_activity_frame",
    "build_rest_period_frame",
    "build_sector_frame",
    "build_techlog_summary_frame",
    "filter_pilot_stats",
    "filter_techlog_entries",
    "summarize_fleet",
]
