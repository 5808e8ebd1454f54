from dataclasses import replace
from datetime import datetime, timezone

import pytest

from aircraft_status import (
    calculate_aircraft_stats,
    calculate_fleet_stats,
    get_all_aircraft_registrations,
    refresh_aircraft_stats,
)
from techlog_models import AircraftStats, Sector, TechlogEntry
from techlog_store import InMemoryTechlogRepository

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _entry(entry_id: str, registration: str, flight_times) -> TechlogEntry:
    sectors = tuple(
        Sector(
            id=f"{entry_id}-{index}",
            departure="HTDA",
            arrival="HTKJ",
            takeoff_time="07:00",
            landing_time="08:00",
            flight_time=flight_time,
        )
        for index, flight_time in enumerate(flight_times, start=1)
    )
    return TechlogEntry(
        id=entry_id,
        techlog_number=f"TL-{entry_id}",
        date="2024-01-01",
        aircraft_registration=registration,
        pilot_name="A. Smith",
        sectors=sectors,
    )


def test_every_sector_is_a_cycle():
    entries = [
        _entry("1", "5H-ABC", [1.5, 2.0]),
        _entry("2", "5h-abc", [0.75]),
        _entry("3", "5H-XYZ", [3.0]),
    ]

    stats = calculate_aircraft_stats("5H-ABC", entries, now=NOW)

    assert stats.registration == "5H-ABC"
    assert stats.total_cycles == 3
    assert stats.total_flight_hours == pytest.approx(4.25)
    assert stats.last_updated == NOW


def test_unknown_registration_has_zero_totals():
    stats = calculate_aircraft_stats("5H-NEW", [_entry("1", "5H-ABC", [1.0])], now=NOW)

    assert stats.total_cycles == 0
    assert stats.total_flight_hours == 0.0


def test_fleet_stats_cover_each_registration_once():
    entries = [
        _entry("1", "5H-XYZ", [1.0]),
        _entry("2", "5h-abc", [2.0]),
        _entry("3", "5H-ABC", [0.5, 0.5]),
    ]

    assert get_all_aircraft_registrations(entries) == ["5H-ABC", "5H-XYZ"]
    fleet = calculate_fleet_stats(entries, now=NOW)
    assert [(item.registration, item.total_cycles) for item in fleet] == [("5H-ABC", 3), ("5H-XYZ", 1)]


def test_refresh_recomputes_from_the_repository_snapshot():
    stale = AircraftStats(registration="5H-ABC", total_cycles=99, total_flight_hours=999.0)
    repository = InMemoryTechlogRepository(
        [_entry("1", "5H-ABC", [1.0]), _entry("2", "5H-ABC", [2.0])],
        aircraft_stats=[stale],
    )

    stats = refresh_aircraft_stats(repository, "5h-abc", now=NOW)

    assert stats.total_cycles == 2
    assert stats.total_flight_hours == pytest.approx(3.0)
    assert repository.list_aircraft_stats() == [stats]


def test_last_updated_is_the_newest_entry_for_the_aircraft():
    older = replace(_entry("1", "5H-ABC", [1.0]), created_at=datetime(2024, 1, 2, 8, 0, tzinfo=timezone.utc))
    newer = replace(_entry("2", "5H-ABC", [1.0]), created_at=datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc))
    other = replace(_entry("3", "5H-XYZ", [1.0]), created_at=datetime(2024, 1, 9, 8, 0, tzinfo=timezone.utc))

    stats = calculate_aircraft_stats("5H-ABC", [newer, other, older], now=NOW)

    assert stats.last_updated == datetime(2024, 1, 5, 8, 0, tzinfo=timezone.utc)
