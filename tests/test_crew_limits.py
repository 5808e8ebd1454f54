from datetime import datetime, timedelta, timezone

import pytest

from crew_limits import (
    DUTY_TIME_LIMITS,
    FLIGHT_TIME_LIMITS,
    calculate_all_pilot_stats,
    calculate_pilot_stats,
    classify_exceedances,
    compute_window_totals,
    get_all_pilot_names,
    get_entries_in_date_range,
    is_exceeded,
)
from flight_time_utils import calculate_flight_time_hours
from techlog_models import Sector, TechlogEntry, WindowTotals

NOW = datetime(2024, 1, 10, 12, 0)


def _sector(departure: str, arrival: str, takeoff: str, landing: str) -> Sector:
    return Sector(
        id=f"{departure}{arrival}{takeoff}",
        departure=departure,
        arrival=arrival,
        takeoff_time=takeoff,
        landing_time=landing,
        flight_time=calculate_flight_time_hours(takeoff, landing),
    )


def _entry(date: str, pilot: str = "A. Smith", *, sectors=None, co_pilot: str | None = None) -> TechlogEntry:
    if sectors is None:
        sectors = [_sector("HTDA", "HTKJ", "06:00", "14:00")]
    return TechlogEntry(
        id=date,
        techlog_number=f"TL-{date}",
        date=date,
        aircraft_registration="5H-ABC",
        pilot_name=pilot,
        co_pilot_name=co_pilot,
        sectors=tuple(sectors),
    )


def test_window_selection_uses_the_entry_date_only():
    entries = [
        _entry("2024-01-11"),
        _entry("2024-01-10"),
        _entry("2024-01-09"),
        _entry("2024-01-04"),
        _entry("2024-01-03"),
    ]

    totals = compute_window_totals("A. Smith", entries, now=NOW)

    # 24h window starts 2024-01-09 12:00, so only today's page counts.
    assert totals["24h"].sectors == 1
    # 7d window starts 2024-01-03 12:00; midnight on the 3rd is outside it.
    assert totals["7d"].sectors == 3
    assert totals["28d"].sectors == 4
    assert totals["365d"].sectors == 4


def test_window_bounds_are_inclusive():
    now = datetime(2024, 1, 10, 0, 0)
    entries = [_entry("2024-01-03"), _entry("2024-01-10")]

    selected = get_entries_in_date_range(entries, now - timedelta(days=7), now)

    assert [entry.date for entry in selected] == ["2024-01-03", "2024-01-10"]


def test_window_selection_with_aware_now():
    now = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

    totals = compute_window_totals("A. Smith", [_entry("2024-01-10")], now=now)

    assert totals["24h"].sectors == 1


def test_unreadable_entry_dates_are_never_selected():
    totals = compute_window_totals("A. Smith", [_entry("not-a-date")], now=NOW)

    assert totals["365d"] == WindowTotals()


def test_window_totals_are_monotonic():
    entries = [_entry(f"2024-01-{day:02d}") for day in range(1, 11)]
    entries += [_entry("2023-12-01"), _entry("2023-06-15"), _entry("2022-01-01")]

    totals = compute_window_totals("A. Smith", entries, now=NOW)

    assert totals["7d"].flight_time <= totals["28d"].flight_time <= totals["365d"].flight_time
    assert totals["7d"].duty_time <= totals["28d"].duty_time <= totals["365d"].duty_time
    assert totals["7d"].sectors <= totals["28d"].sectors <= totals["365d"].sectors


def test_co_pilot_is_credited_with_the_entry():
    entries = [_entry("2024-01-10", pilot="B. Jones", co_pilot="A. Smith")]

    totals = compute_window_totals("A. Smith", entries, now=NOW)

    assert totals["7d"].flight_time == pytest.approx(8.0)
    assert totals["7d"].duty_time == pytest.approx(7.5)


def test_duty_time_is_summed_per_entry():
    entries = [
        _entry("2024-01-10", sectors=[_sector("HTDA", "HTKJ", "06:00", "07:00")]),
        _entry("2024-01-10", sectors=[_sector("HTKJ", "HTDA", "16:00", "17:00")]),
    ]

    totals = compute_window_totals("A. Smith", entries, now=NOW)

    # Each page: (07:00 + 15m) - (06:00 + 45m) = 0.5h
    assert totals["24h"].duty_time == pytest.approx(1.0)


@pytest.mark.parametrize(
    "total, limit, expected",
    [
        (34, 34, False),
        (34.0001, 34, True),
        (33.9, 34, False),
        (10, 10, False),
        (11, 10, True),
    ],
)
def test_is_exceeded_is_strictly_greater(total, limit, expected):
    assert is_exceeded(total, limit) is expected


def test_totals_at_the_limits_are_not_exceedances():
    totals = {
        label: WindowTotals(
            flight_time=FLIGHT_TIME_LIMITS[label],
            duty_time=DUTY_TIME_LIMITS[label],
            sectors=0,
        )
        for label in ("7d", "28d", "365d")
    }
    totals["24h"] = WindowTotals(sectors=10)

    exceedances = classify_exceedances(totals)

    assert not exceedances.has_any


def test_each_limit_is_classified_independently():
    totals = {
        "24h": WindowTotals(sectors=11),
        "7d": WindowTotals(flight_time=34.5, duty_time=10),
        "28d": WindowTotals(flight_time=50, duty_time=190.25),
        "365d": WindowTotals(flight_time=1000, duty_time=1800),
    }

    exceedances = classify_exceedances(totals)

    assert exceedances.as_dict() == {
        "flightTime7Days": True,
        "flightTime28Days": False,
        "flightTime365Days": False,
        "dutyTime7Days": False,
        "dutyTime28Days": True,
        "dutyTime365Days": False,
        "sectors24Hours": True,
    }
    assert exceedances.has_any


def test_calculate_pilot_stats_flags_seven_day_flight_time():
    entries = [_entry(f"2024-01-{day:02d}") for day in range(6, 11)]

    stats = calculate_pilot_stats("A. Smith", entries, now=NOW)

    assert stats.flight_time_7_days == pytest.approx(40.0)
    assert stats.duty_time_7_days == pytest.approx(37.5)
    assert stats.sectors_7_days == 5
    assert stats.sectors_24_hours == 1
    assert stats.exceedances.flight_time_7_days is True
    assert stats.exceedances.duty_time_7_days is False
    assert stats.has_exceedance


def test_calculate_pilot_stats_flags_sector_count_in_24_hours():
    shuttle = [_sector("HTDA", "HTZA", f"{hour:02d}:00", f"{hour:02d}:20") for hour in range(6, 17)]
    stats = calculate_pilot_stats("A. Smith", [_entry("2024-01-10", sectors=shuttle)], now=NOW)

    assert stats.sectors_24_hours == 11
    assert stats.exceedances.sectors_24_hours is True


def test_pilot_with_no_entries_has_zero_totals():
    stats = calculate_pilot_stats("Nobody", [_entry("2024-01-10")], now=NOW)

    assert stats.flight_time_365_days == 0.0
    assert stats.sectors_24_hours == 0
    assert not stats.has_exceedance


def test_get_all_pilot_names_includes_co_pilots_sorted():
    entries = [
        _entry("2024-01-10", pilot="C. Brown", co_pilot="A. Smith"),
        _entry("2024-01-09", pilot="B. Jones"),
        _entry("2024-01-08", pilot="A. Smith"),
    ]

    assert get_all_pilot_names(entries) == ["A. Smith", "B. Jones", "C. Brown"]
    assert [stats.pilot_name for stats in calculate_all_pilot_stats(entries, now=NOW)] == [
        "A. Smith",
        "B. Jones",
        "C. Brown",
    ]
