from datetime import date, datetime, timezone

import pytest

from techlog_models import (
    AircraftStats,
    PilotStats,
    Sector,
    TechlogEntry,
    format_timestamp,
    parse_entry_date,
    parse_timestamp,
)


def _stored_entry(**overrides):
    payload = {
        "id": "1704103200000",
        "techlogNumber": "TL-2024-001",
        "date": "2024-01-01",
        "aircraftRegistration": "5H-ABC",
        "pilotName": "A. Smith",
        "coPilotName": "B. Jones",
        "sectors": [
            {
                "id": "s1",
                "departure": "HTDA",
                "arrival": "HTKJ",
                "takeoffTime": "07:00",
                "landingTime": "08:20",
                "flightTime": 1.33,
            }
        ],
        "createdAt": "2024-01-01T10:00:00Z",
    }
    payload.update(overrides)
    return payload


def test_entry_from_stored_record():
    entry = TechlogEntry.from_dict(_stored_entry())

    assert entry.techlog_number == "TL-2024-001"
    assert entry.entry_date == date(2024, 1, 1)
    assert entry.co_pilot_name == "B. Jones"
    assert entry.sector_count == 1
    assert entry.sectors[0].takeoff_time == "07:00"
    assert entry.sectors[0].flight_time == pytest.approx(1.33)
    assert entry.created_at == datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def test_entry_as_dict_uses_stored_field_names():
    entry = TechlogEntry.from_dict(_stored_entry())

    assert entry.as_dict() == _stored_entry()


def test_entry_without_co_pilot_omits_the_key():
    payload = _stored_entry(coPilotName="  ")

    entry = TechlogEntry.from_dict(payload)

    assert entry.co_pilot_name is None
    assert "coPilotName" not in entry.as_dict()


def test_entry_from_dict_rejects_non_list_sectors():
    with pytest.raises(ValueError):
        TechlogEntry.from_dict(_stored_entry(sectors="HTDA-HTKJ"))


def test_sector_from_dict_tolerates_bad_flight_time():
    sector = Sector.from_dict({"departure": "HTDA", "arrival": "HTKJ", "flightTime": "n/a"})

    assert sector.flight_time == 0.0
    assert sector.takeoff_time == ""
    assert sector.is_complete is False


@pytest.mark.parametrize(
    "pilot_name, expected",
    [
        ("A. Smith", True),
        ("B. Jones", True),
        ("C. Brown", False),
        ("a. smith", False),
    ],
)
def test_involves_pilot_matches_either_seat_exactly(pilot_name, expected):
    entry = TechlogEntry.from_dict(_stored_entry())

    assert entry.involves_pilot(pilot_name) is expected


def test_aircraft_stats_keep_the_stored_registration():
    stats = AircraftStats.from_dict(
        {"registration": "5h-abc", "totalCycles": "12", "totalFlightHours": 20.5, "lastUpdated": None}
    )

    assert stats.registration == "5h-abc"
    assert AircraftStats.from_dict(stats.as_dict()) == stats
    assert stats.total_cycles == 12
    assert stats.total_flight_hours == pytest.approx(20.5)
    assert stats.last_updated is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-05", date(2024, 1, 5)),
        ("2024-01-05T08:00:00", date(2024, 1, 5)),
        (datetime(2024, 1, 5, 23, 0), date(2024, 1, 5)),
        ("", None),
        ("05/01/2024", None),
        (None, None),
    ],
)
def test_parse_entry_date(value, expected):
    assert parse_entry_date(value) == expected


def test_timestamps_keep_the_z_suffix_for_utc():
    aware = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert format_timestamp(aware) == "2024-01-01T10:00:00Z"
    assert format_timestamp(datetime(2024, 1, 1, 10, 0)) == "2024-01-01T10:00:00"
    assert parse_timestamp("2024-01-01T10:00:00Z") == aware
    assert parse_timestamp("yesterday") is None
    assert format_timestamp(None) is None


def test_pilot_stats_defaults_have_no_exceedance():
    stats = PilotStats(pilot_name="A. Smith")

    assert stats.has_exceedance is False
    assert set(stats.exceedances.as_dict()) == {
        "flightTime7Days",
        "flightTime28Days",
        "flightTime365Days",
        "dutyTime7Days",
        "dutyTime28Days",
        "dutyTime365Days",
        "sectors24Hours",
    }
