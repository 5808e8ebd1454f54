"""Shared dataclasses for techlog entries and the statistics derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Mapping, Optional, Tuple


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _coerce_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _coerce_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-like timestamp, treating a trailing ``Z`` as UTC."""

    if isinstance(value, datetime):
        return value
    text = _clean_text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None and value.utcoffset() == timedelta(0):
        return value.isoformat().replace("+00:00", "Z")
    return value.isoformat()


def normalize_registration(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def parse_entry_date(value: Any) -> Optional[date]:
    """Return the calendar date of a ``YYYY-MM-DD`` string, or ``None``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _clean_text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class Sector:
    """One takeoff-to-landing flight leg recorded on a techlog page."""

    id: str
    departure: str
    arrival: str
    takeoff_time: str
    landing_time: str
    flight_time: float = 0.0

    @property
    def is_complete(self) -> bool:
        return bool(self.departure and self.arrival and self.takeoff_time and self.landing_time)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "departure": self.departure,
            "arrival": self.arrival,
            "takeoffTime": self.takeoff_time,
            "landingTime": self.landing_time,
            "flightTime": self.flight_time,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Sector":
        return cls(
            id=_clean_text(payload.get("id")),
            departure=_clean_text(payload.get("departure")),
            arrival=_clean_text(payload.get("arrival")),
            takeoff_time=_clean_text(payload.get("takeoffTime")),
            landing_time=_clean_text(payload.get("landingTime")),
            flight_time=max(_coerce_float(payload.get("flightTime")), 0.0),
        )


@dataclass(frozen=True)
class TechlogEntry:
    """A single techlog submission covering one aircraft on one calendar date."""

    id: str
    techlog_number: str
    date: str
    aircraft_registration: str
    pilot_name: str
    sectors: Tuple[Sector, ...] = ()
    co_pilot_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def entry_date(self) -> Optional[date]:
        return parse_entry_date(self.date)

    @property
    def sector_count(self) -> int:
        return len(self.sectors)

    def involves_pilot(self, pilot_name: str) -> bool:
        return self.pilot_name == pilot_name or (
            self.co_pilot_name is not None and self.co_pilot_name == pilot_name
        )

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "techlogNumber": self.techlog_number,
            "date": self.date,
            "aircraftRegistration": self.aircraft_registration,
            "pilotName": self.pilot_name,
            "sectors": [sector.as_dict() for sector in self.sectors],
            "createdAt": format_timestamp(self.created_at),
        }
        if self.co_pilot_name:
            payload["coPilotName"] = self.co_pilot_name
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TechlogEntry":
        raw_sectors = payload.get("sectors") or []
        if not isinstance(raw_sectors, (list, tuple)):
            raise ValueError("sectors must be a list")
        sectors = tuple(Sector.from_dict(item) for item in raw_sectors if isinstance(item, Mapping))
        return cls(
            id=_clean_text(payload.get("id")),
            techlog_number=_clean_text(payload.get("techlogNumber")),
            date=_clean_text(payload.get("date")),
            aircraft_registration=_clean_text(payload.get("aircraftRegistration")),
            pilot_name=_clean_text(payload.get("pilotName")),
            sectors=sectors,
            co_pilot_name=_clean_text(payload.get("coPilotName")) or None,
            created_at=parse_timestamp(payload.get("createdAt")),
        )


@dataclass(frozen=True)
class AircraftStats:
    """Cumulative cycle and flight-hour rollup for one registration."""

    registration: str
    total_cycles: int
    total_flight_hours: float
    last_updated: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "registration": self.registration,
            "totalCycles": self.total_cycles,
            "totalFlightHours": self.total_flight_hours,
            "lastUpdated": format_timestamp(self.last_updated),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AircraftStats":
        return cls(
            registration=_clean_text(payload.get("registration")),
            total_cycles=_coerce_int(payload.get("totalCycles")),
            total_flight_hours=_coerce_float(payload.get("totalFlightHours")),
            last_updated=parse_timestamp(payload.get("lastUpdated")),
        )


@dataclass(frozen=True)
class DailyDutySummary:
    """All of a pilot's sectors for one calendar date, in logged order."""

    pilot_name: str
    date: str
    entries: Tuple[TechlogEntry, ...]
    sectors: Tuple[Sector, ...]
    total_flight_time: float
    duty_time: float
    earliest_takeoff: Optional[str]
    latest_landing: Optional[str]
    last_arrival: Optional[str]
    is_overnight: bool

    @property
    def sector_count(self) -> int:
        return len(self.sectors)

    @property
    def first_sector(self) -> Optional[Sector]:
        return self.sectors[0] if self.sectors else None

    @property
    def last_sector(self) -> Optional[Sector]:
        return self.sectors[-1] if self.sectors else None


@dataclass(frozen=True)
class RestPeriod:
    """Rest between the end of one duty day and the start of the next."""

    from_date: str
    to_date: str
    start: datetime
    end: datetime
    hours: float
    is_compliant: bool


@dataclass(frozen=True)
class RestComplianceSummary:
    """Rest-period and overnight figures for one pilot."""

    pilot_name: str
    rest_periods: Tuple[RestPeriod, ...] = ()
    recent_rest_periods: Tuple[RestPeriod, ...] = ()
    total_overnights: int = 0
    recent_overnights: int = 0

    @property
    def total_rest_count(self) -> int:
        return len(self.rest_periods)

    @property
    def compliant_rest_count(self) -> int:
        return sum(1 for period in self.rest_periods if period.is_compliant)

    @property
    def recent_rest_count(self) -> int:
        return len(self.recent_rest_periods)

    @property
    def recent_compliant_rest_count(self) -> int:
        return sum(1 for period in self.recent_rest_periods if period.is_compliant)

    @property
    def is_fully_compliant(self) -> bool:
        return all(period.is_compliant for period in self.recent_rest_periods)


@dataclass(frozen=True)
class WindowTotals:
    """Flight time, duty time and sector count accumulated inside one window."""

    flight_time: float = 0.0
    duty_time: float = 0.0
    sectors: int = 0


@dataclass(frozen=True)
class Exceedances:
    flight_time_7_days: bool = False
    flight_time_28_days: bool = False
    flight_time_365_days: bool = False
    duty_time_7_days: bool = False
    duty_time_28_days: bool = False
    duty_time_365_days: bool = False
    sectors_24_hours: bool = False

    @property
    def has_any(self) -> bool:
        return any(self.as_dict().values())

    def as_dict(self) -> Dict[str, bool]:
        return {
            "flightTime7Days": self.flight_time_7_days,
            "flightTime28Days": self.flight_time_28_days,
            "flightTime365Days": self.flight_time_365_days,
            "dutyTime7Days": self.duty_time_7_days,
            "dutyTime28Days": self.duty_time_28_days,
            "dutyTime365Days": self.duty_time_365_days,
            "sectors24Hours": self.sectors_24_hours,
        }


@dataclass(frozen=True)
class PilotStats:
    """Rolling-window totals and limit exceedances for one pilot."""

    pilot_name: str
    flight_time_7_days: float = 0.0
    flight_time_28_days: float = 0.0
    flight_time_365_days: float = 0.0
    duty_time_7_days: float = 0.0
    duty_time_28_days: float = 0.0
    duty_time_365_days: float = 0.0
    sectors_24_hours: int = 0
    sectors_7_days: int = 0
    sectors_28_days: int = 0
    sectors_365_days: int = 0
    exceedances: Exceedances = field(default_factory=Exceedances)

    @property
    def has_exceedance(self) -> bool:
        return self.exceedances.has_any


__all__ = [
    "AircraftStats",
    "DailyDutySummary",
    "Exceedances",
    "PilotStats",
    "RestComplianceSummary",
    "RestPeriod",
    "Sector",
    "TechlogEntry",
    "WindowTotals",
    "format_timestamp",
    "normalize_registration",
    "parse_entry_date",
    "parse_timestamp",
]
