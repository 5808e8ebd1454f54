"""Settings for the crew status tracker pages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from duty_rest import DEFAULT_HOME_BASE
from techlog_store import DEFAULT_DATA_PATH, JsonTechlogRepository

DEFAULT_TIMEZONE = "UTC"
SECRETS_SECTION = "crew_tracker"


class TrackerConfigError(RuntimeError):
    """Raised when the ``[crew_tracker]`` settings cannot be used."""


@dataclass(frozen=True)
class TrackerConfig:
    home_base: str = DEFAULT_HOME_BASE
    data_path: Path = DEFAULT_DATA_PATH
    timezone: str = DEFAULT_TIMEZONE

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def now(self) -> datetime:
        """Current wall-clock time in the configured zone; the only clock read in the app."""

        return datetime.now(tz=self.zone)

    def repository(self) -> JsonTechlogRepository:
        return JsonTechlogRepository(self.data_path)


def build_tracker_config(settings: Optional[Mapping[str, Any]]) -> TrackerConfig:
    """Coerce a secrets section into a :class:`TrackerConfig`, filling in defaults."""

    if not settings:
        return TrackerConfig()

    home_base = str(settings.get("home_base") or DEFAULT_HOME_BASE).strip().upper()
    if not home_base:
        home_base = DEFAULT_HOME_BASE

    data_path_value = settings.get("data_path")
    data_path = Path(str(data_path_value)) if data_path_value else DEFAULT_DATA_PATH

    timezone_name = str(settings.get("timezone") or DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise TrackerConfigError(f"Unknown timezone '{timezone_name}' in [{SECRETS_SECTION}] settings.") from exc

    return TrackerConfig(home_base=home_base, data_path=data_path, timezone=timezone_name)


__all__ = [
    "DEFAULT_TIMEZONE",
    "SECRETS_SECTION",
    "TrackerConfig",
    "TrackerConfigError",
    "build_tracker_config",
]
