"""Validation and submission of new techlog entries."""

from __future__ import annotations

import math
from datetime import date, datetime, time
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from aircraft_status import refresh_aircraft_stats
from flight_time_utils import calculate_flight_time_hours
from techlog_models import AircraftStats, Sector, TechlogEntry
from techlog_store import WritableTechlogRepository


class TechlogValidationError(ValueError):
    """Raised when techlog form input cannot be turned into an entry."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages))


class SectorInput(BaseModel):
    """One sector row as typed into the entry form."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    departure: str = ""
    arrival: str = ""
    takeoff_time: str = ""
    landing_time: str = ""

    @field_validator("id", "departure", "arrival", "takeoff_time", "landing_time", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> str:
        # Empty data_editor cells arrive as None or NaN.
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return ""
        if isinstance(value, time):
            return value.strftime("%H:%M")
        return str(value).strip()

    @field_validator("departure", "arrival")
    @classmethod
    def upper_airport(cls, value: str) -> str:
        return value.upper()

    @property
    def is_complete(self) -> bool:
        return bool(self.departure and self.arrival and self.takeoff_time and self.landing_time)

    def to_sector(self, fallback_id: str) -> Sector:
        flight_time = calculate_flight_time_hours(self.takeoff_time, self.landing_time)
        return Sector(
            id=self.id or fallback_id,
            departure=self.departure,
            arrival=self.arrival,
            takeoff_time=self.takeoff_time,
            landing_time=self.landing_time,
            flight_time=round(flight_time, 2),
        )


class TechlogEntryForm(BaseModel):
    """Header fields of the entry form plus its sector rows."""

    model_config = ConfigDict(frozen=True)

    techlog_number: str = Field(..., description="Techlog page number, e.g. TL-2024-001")
    entry_date: date = Field(..., alias="date")
    aircraft_registration: str
    pilot_name: str
    co_pilot_name: Optional[str] = None
    sectors: List[SectorInput] = Field(default_factory=list)

    @field_validator("techlog_number", "aircraft_registration", "pilot_name", mode="before")
    @classmethod
    def require_text(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("is required")
        return text

    @field_validator("aircraft_registration")
    @classmethod
    def upper_registration(cls, value: str) -> str:
        return value.upper()

    @field_validator("co_pilot_name", mode="before")
    @classmethod
    def blank_co_pilot(cls, value: Any) -> Optional[str]:
        text = "" if value is None else str(value).strip()
        return text or None

    @model_validator(mode="after")
    def require_complete_sector(self) -> "TechlogEntryForm":
        if not any(sector.is_complete for sector in self.sectors):
            raise ValueError("at least one sector needs departure, arrival, takeoff and landing")
        return self


def _format_validation_error(exc: ValidationError) -> List[str]:
    messages: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
        message = str(error.get("msg", "invalid value")).replace("Value error, ", "")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def build_techlog_entry(
    form: Mapping[str, Any],
    sectors: Iterable[Mapping[str, Any]],
    *,
    created_at: datetime,
) -> TechlogEntry:
    """Validate raw form input and build an immutable :class:`TechlogEntry`.

    Incomplete sector rows are dropped. The entry id is the creation time in
    epoch milliseconds.
    """

    try:
        payload = dict(form)
        payload["sectors"] = [dict(row) for row in sectors]
        parsed = TechlogEntryForm.model_validate(payload)
    except ValidationError as exc:
        raise TechlogValidationError(_format_validation_error(exc)) from exc

    entry_id = str(int(created_at.timestamp() * 1000))
    valid_rows = [row for row in parsed.sectors if row.is_complete]
    return TechlogEntry(
        id=entry_id,
        techlog_number=parsed.techlog_number,
        date=parsed.entry_date.isoformat(),
        aircraft_registration=parsed.aircraft_registration,
        pilot_name=parsed.pilot_name,
        co_pilot_name=parsed.co_pilot_name,
        sectors=tuple(row.to_sector(f"{entry_id}-{index}") for index, row in enumerate(valid_rows, start=1)),
        created_at=created_at,
    )


def submit_techlog_entry(repository: WritableTechlogRepository, entry: TechlogEntry, *, now: datetime) -> AircraftStats:
    """Persist ``entry`` and recompute its aircraft's rollup from the new snapshot."""

    repository.add(entry)
    return refresh_aircraft_stats(repository, entry.aircraft_registration, now=now)


__all__ = [
    "SectorInput",
    "TechlogEntryForm",
    "TechlogValidationError",
    "build_techlog_entry",
    "submit_techlog_entry",
]
