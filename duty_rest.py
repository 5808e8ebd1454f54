"""Daily duty grouping, overnight tracking and 36-hour rest compliance."""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from crew_limits import date_in_window, select_pilot_entries
from flight_time_utils import (
    DUTY_END_BUFFER_MINUTES,
    DUTY_START_BUFFER_MINUTES,
    calculate_duty_time,
    calculate_flight_time,
    combine_date_and_time,
    earliest_takeoff,
    latest_landing,
)
from techlog_models import (
    DailyDutySummary,
    RestComplianceSummary,
    RestPeriod,
    TechlogEntry,
    parse_entry_date,
)

DEFAULT_HOME_BASE = "HTDA"
MIN_REST_HOURS = 36.0
RECENT_WINDOW = timedelta(days=7)


def _normalize_code(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def _build_summary(
    pilot_name: str,
    day: str,
    entries: Sequence[TechlogEntry],
    home_base: str,
) -> DailyDutySummary:
    sectors = tuple(sector for entry in entries for sector in entry.sectors)
    last_arrival = sectors[-1].arrival if sectors else None
    is_overnight = bool(sectors) and _normalize_code(last_arrival) != _normalize_code(home_base)
    return DailyDutySummary(
        pilot_name=pilot_name,
        date=day,
        entries=tuple(entries),
        sectors=sectors,
        total_flight_time=calculate_flight_time(sectors),
        duty_time=calculate_duty_time(sectors),
        earliest_takeoff=earliest_takeoff(sectors),
        latest_landing=latest_landing(sectors),
        last_arrival=last_arrival,
        is_overnight=is_overnight,
    )


def group_daily_duty(
    pilot_name: str,
    entries: Sequence[TechlogEntry],
    *,
    home_base: str = DEFAULT_HOME_BASE,
) -> List[DailyDutySummary]:
    """One summary per date the pilot flew, most recent date first.

    Sectors keep the order they were logged in: entry order first, then the
    sector order within each entry.
    """

    groups: Dict[str, List[TechlogEntry]] = OrderedDict()
    for entry in select_pilot_entries(entries, pilot_name):
        groups.setdefault(entry.date, []).append(entry)

    summaries = [_build_summary(pilot_name, day, grouped, home_base) for day, grouped in groups.items()]
    summaries.sort(key=lambda summary: summary.date, reverse=True)
    return summaries


def _summary_in_recent_window(summary: DailyDutySummary, now: datetime) -> bool:
    return date_in_window(parse_entry_date(summary.date), now - RECENT_WINDOW, now)


def compute_rest_period(previous: DailyDutySummary, following: DailyDutySummary) -> Optional[RestPeriod]:
    """Rest from ``previous``'s last landing to ``following``'s first takeoff.

    Returns ``None`` when either boundary sector is missing or its time or
    date cannot be read.
    """

    last_sector = previous.last_sector
    first_sector = following.first_sector
    if last_sector is None or first_sector is None:
        return None

    previous_date = parse_entry_date(previous.date)
    following_date = parse_entry_date(following.date)
    if previous_date is None or following_date is None:
        return None

    last_landing = combine_date_and_time(previous_date, last_sector.landing_time)
    first_takeoff = combine_date_and_time(following_date, first_sector.takeoff_time)
    if last_landing is None or first_takeoff is None:
        return None

    start = last_landing + timedelta(minutes=DUTY_END_BUFFER_MINUTES)
    end = first_takeoff + timedelta(minutes=DUTY_START_BUFFER_MINUTES)
    hours = (end - start).total_seconds() / 3600.0
    return RestPeriod(
        from_date=previous.date,
        to_date=following.date,
        start=start,
        end=end,
        hours=hours,
        is_compliant=hours >= MIN_REST_HOURS,
    )


def compute_rest_periods(daily: Sequence[DailyDutySummary]) -> List[RestPeriod]:
    ordered = sorted(daily, key=lambda summary: summary.date)
    periods: List[RestPeriod] = []
    for previous, following in zip(ordered, ordered[1:]):
        period = compute_rest_period(previous, following)
        if period is not None:
            periods.append(period)
    return periods


def count_overnights(daily: Sequence[DailyDutySummary], *, now: datetime) -> Tuple[int, int]:
    """Return ``(total, recent)`` overnight day counts; recent is the trailing 7 days."""

    total = sum(1 for summary in daily if summary.is_overnight)
    recent = sum(1 for summary in daily if summary.is_overnight and _summary_in_recent_window(summary, now))
    return total, recent


def evaluate_rest_compliance(
    pilot_name: str,
    entries: Sequence[TechlogEntry],
    *,
    now: datetime,
    home_base: str = DEFAULT_HOME_BASE,
) -> RestComplianceSummary:
    daily = group_daily_duty(pilot_name, entries, home_base=home_base)

    periods = compute_rest_periods(daily)
    recent_start = now - RECENT_WINDOW
    recent = [
        period
        for period in periods
        if date_in_window(parse_entry_date(period.to_date), recent_start, now)
    ]
    total_overnights, recent_overnights = count_overnights(daily, now=now)

    return RestComplianceSummary(
        pilot_name=pilot_name,
        rest_periods=tuple(periods),
        recent_rest_periods=tuple(recent),
        total_overnights=total_overnights,
        recent_overnights=recent_overnights,
    )


__all__ = [
    "DEFAULT_HOME_BASE",
    "MIN_REST_HOURS",
    "RECENT_WINDOW",
    "compute_rest_period",
    "compute_rest_periods",
    "count_overnights",
    "evaluate_rest_compliance",
    "group_daily_duty",
]
