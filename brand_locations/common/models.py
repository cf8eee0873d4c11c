"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class RawRecord:
    lat: float | None
    lon: float | None
    tags: Mapping[str, Any]
    source_name: str = ""
    source_record_id: str | None = None

    def tag(self, key: str) -> str:
        value = self.tags.get(key)
        if value is None:
            return ""
        return str(value).strip()


@dataclass(frozen=True)
class ExtractedFields:
    city: str
    state: str
    address: str
    name: str = ""
    missing: tuple[str, ...] = ()


@dataclass(frozen=True)
class CanonicalLocation:
    lat: float
    lon: float
    city: str = ""
    state: str = ""
    address: str = ""
    name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BrandCollection:
    key: str
    display_name: str
    category: str
    locations: tuple[CanonicalLocation, ...]
    use_location_name: bool = False
    source: str = "geojson"

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "displayName": self.display_name,
            "category": self.category,
            "useLocationName": self.use_location_name,
            "source": self.source,
            "locations": [location.to_dict() for location in self.locations],
        }


@dataclass(frozen=True)
class BoundaryMismatch:
    source: str
    city: str
    stated_state: str
    actual_state: str
    lat: float
    lon: float
    address: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SuspiciousCity:
    source: str
    city: str
    state: str
    lat: float
    lon: float
    address: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AssemblyResult:
    locations: list[CanonicalLocation]
    stats: dict[str, Any] = field(default_factory=dict)
