"""Persistence for techlog entries and the aircraft rollup cache."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from techlog_models import AircraftStats, TechlogEntry

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path("data") / "techlog_data.json"


class TechlogStoreError(RuntimeError):
    """Raised when the techlog data file cannot be read or written."""


class TechlogRepository(Protocol):
    """What the statistics code needs from storage: a snapshot and a rollup sink."""

    def list(self) -> List[TechlogEntry]:
        ...

    def upsert(self, stats: AircraftStats) -> None:
        ...


class WritableTechlogRepository(TechlogRepository, Protocol):
    def add(self, entry: TechlogEntry) -> None:
        ...


def _upsert_stats(existing: Sequence[AircraftStats], stats: AircraftStats) -> List[AircraftStats]:
    updated = list(existing)
    for index, current in enumerate(updated):
        if current.registration == stats.registration:
            updated[index] = stats
            return updated
    updated.append(stats)
    return updated


class InMemoryTechlogRepository:
    """Repository backed by plain lists, used by tests and previews."""

    def __init__(
        self,
        entries: Optional[Sequence[TechlogEntry]] = None,
        aircraft_stats: Optional[Sequence[AircraftStats]] = None,
    ) -> None:
        self._entries: List[TechlogEntry] = list(entries or [])
        self._aircraft_stats: List[AircraftStats] = list(aircraft_stats or [])

    def list(self) -> List[TechlogEntry]:
        return list(self._entries)

    def add(self, entry: TechlogEntry) -> None:
        self._entries.append(entry)

    def upsert(self, stats: AircraftStats) -> None:
        self._aircraft_stats = _upsert_stats(self._aircraft_stats, stats)

    def list_aircraft_stats(self) -> List[AircraftStats]:
        return list(self._aircraft_stats)

    def clear(self) -> None:
        self._entries = []
        self._aircraft_stats = []


@dataclass
class _Snapshot:
    """Parsed records plus the raw items that could not be parsed.

    Unreadable list items are written back untouched on the next save.
    """

    entries: List[TechlogEntry] = field(default_factory=list)
    aircraft_stats: List[AircraftStats] = field(default_factory=list)
    unreadable: Dict[str, List[Any]] = field(default_factory=dict)
    malformed_sections: List[str] = field(default_factory=list)


def _parse_records(raw: Any, parser, label: str, snapshot: _Snapshot) -> List[Any]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Ignoring %s: expected a list, got %s", label, type(raw).__name__)
        snapshot.malformed_sections.append(label)
        return []

    records: List[Any] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.warning("Skipping %s[%d]: not an object", label, index)
            snapshot.unreadable.setdefault(label, []).append(item)
            continue
        try:
            records.append(parser(item))
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping %s[%d]: %s", label, index, exc)
            snapshot.unreadable.setdefault(label, []).append(item)
    return records


class JsonTechlogRepository:
    """Whole-file JSON snapshot of every entry plus the cached aircraft rollups.

    Each write reloads the file, applies the change and rewrites it, so the
    file always holds one consistent snapshot. Records that fail to parse are
    skipped on read and kept verbatim on write.
    """

    def __init__(self, path: Path | str = DEFAULT_DATA_PATH) -> None:
        self.path = Path(path)

    def _load(self) -> _Snapshot:
        snapshot = _Snapshot()
        if not self.path.exists():
            return snapshot
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TechlogStoreError(f"Unable to read techlog data from {self.path}: {exc}") from exc
        if not text.strip():
            return snapshot
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise TechlogStoreError(f"Techlog data file {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise TechlogStoreError(f"Techlog data file {self.path} must contain a JSON object.")

        snapshot.entries = _parse_records(
            payload.get("techlogEntries"), TechlogEntry.from_dict, "techlogEntries", snapshot
        )
        snapshot.aircraft_stats = _parse_records(
            payload.get("aircraftStats"), AircraftStats.from_dict, "aircraftStats", snapshot
        )
        return snapshot

    def _save(self, snapshot: _Snapshot) -> None:
        if snapshot.malformed_sections:
            sections = ", ".join(snapshot.malformed_sections)
            raise TechlogStoreError(
                f"Refusing to overwrite {self.path}: {sections} is not a list. Fix the file by hand first."
            )

        payload = {
            "techlogEntries": [entry.as_dict() for entry in snapshot.entries]
            + list(snapshot.unreadable.get("techlogEntries", [])),
            "aircraftStats": [stats.as_dict() for stats in snapshot.aircraft_stats]
            + list(snapshot.unreadable.get("aircraftStats", [])),
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise TechlogStoreError(f"Unable to write techlog data to {self.path}: {exc}") from exc

    def list(self) -> List[TechlogEntry]:
        return list(self._load().entries)

    def list_aircraft_stats(self) -> List[AircraftStats]:
        return list(self._load().aircraft_stats)

    def add(self, entry: TechlogEntry) -> None:
        snapshot = self._load()
        snapshot.entries.append(entry)
        self._save(snapshot)
        logger.info("Saved techlog %s for %s on %s", entry.techlog_number, entry.aircraft_registration, entry.date)

    def upsert(self, stats: AircraftStats) -> None:
        snapshot = self._load()
        snapshot.aircraft_stats = _upsert_stats(snapshot.aircraft_stats, stats)
        self._save(snapshot)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise TechlogStoreError(f"Unable to remove techlog data at {self.path}: {exc}") from exc
        logger.info("Cleared techlog data at %s", self.path)


__all__ = [
    "DEFAULT_DATA_PATH",
    "InMemoryTechlogRepository",
    "JsonTechlogRepository",
    "TechlogRepository",
    "TechlogStoreError",
    "WritableTechlogRepository",
]
