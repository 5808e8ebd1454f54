"""Cycle and flight-hour rollups per aircraft registration."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Sequence

from flight_time_utils import count_sectors, sum_entry_flight_time
from techlog_models import AircraftStats, TechlogEntry, normalize_registration
from techlog_store import TechlogRepository


def get_all_aircraft_registrations(entries: Iterable[TechlogEntry]) -> List[str]:
    registrations = {
        normalize_registration(entry.aircraft_registration)
        for entry in entries
        if entry.aircraft_registration
    }
    return sorted(registrations)


def calculate_aircraft_stats(
    registration: str,
    entries: Sequence[TechlogEntry],
    *,
    now: datetime,
) -> AircraftStats:
    """Recompute the rollup for ``registration`` from the whole entry set.

    Every sector counts as one cycle. ``last_updated`` is the newest entry
    creation time for the aircraft, or ``now`` when no entry carries one.
    """

    target = normalize_registration(registration)
    aircraft_entries = [
        entry for entry in entries if normalize_registration(entry.aircraft_registration) == target
    ]
    created = [entry.created_at for entry in aircraft_entries if entry.created_at is not None]
    return AircraftStats(
        registration=target,
        total_cycles=count_sectors(aircraft_entries),
        total_flight_hours=sum_entry_flight_time(aircraft_entries),
        last_updated=max(created, key=lambda moment: moment.timestamp()) if created else now,
    )


def calculate_fleet_stats(entries: Sequence[TechlogEntry], *, now: datetime) -> List[AircraftStats]:
    return [
        calculate_aircraft_stats(registration, entries, now=now)
        for registration in get_all_aircraft_registrations(entries)
    ]


def refresh_aircraft_stats(repository: TechlogRepository, registration: str, *, now: datetime) -> AircraftStats:
    """Recompute one registration from ``repository.list()`` and upsert the result.

    The stored rollup is only as fresh as the last write that touched the
    registration; the dashboards read :func:`calculate_fleet_stats` instead.
    """

    stats = calculate_aircraft_stats(registration, repository.list(), now=now)
    repository.upsert(stats)
    return stats


__all__ = [
    "calculate_aircraft_stats",
    "calculate_fleet_stats",
    "get_all_aircraft_registrations",
    "refresh_aircraft_stats",
]
