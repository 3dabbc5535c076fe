"""Data models used across the ingestion pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class DetectionRange:
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    def contains(self, x: float, y: float) -> bool:
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max


@dataclass(frozen=True)
class CrsDescriptor:
    code: str
    kind: str
    label: str
    definition: str
    detection: DetectionRange | None = None

    @property
    def is_geographic(self) -> bool:
        return self.kind == "geographic"


@dataclass(frozen=True)
class RegionBounds:
    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    def contains(self, lon: float, lat: float) -> bool:
        return self.min_lon <= lon <= self.max_lon and self.min_lat <= lat <= self.max_lat

    @classmethod
    def from_dict(cls, bbox: dict[str, Any]) -> "RegionBounds":
        return cls(
            min_lon=float(bbox["min_lon"]),
            max_lon=float(bbox["max_lon"]),
            min_lat=float(bbox["min_lat"]),
            max_lat=float(bbox["max_lat"]),
        )


@dataclass(frozen=True)
class Detection:
    code: str
    fallback_used: bool = False


@dataclass(frozen=True)
class ConvertedCoordinate:
    """Outcome of converting one raw pair.

    Either longitude and latitude are both set, or error is; never both.
    """

    longitude: float | None
    latitude: float | None
    source_system: str | None = None
    fallback_used: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.longitude is not None and self.latitude is not None

    @classmethod
    def failure(cls, error: str, *, source_system: str | None = None, fallback_used: bool = False) -> "ConvertedCoordinate":
        return cls(
            longitude=None,
            latitude=None,
            source_system=source_system,
            fallback_used=fallback_used,
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ConversionStats:
    total: int = 0
    success: int = 0
    failed: int = 0
    systems: dict[str, int] = field(default_factory=dict)

    def record_success(self, source_system: str) -> None:
        self.success += 1
        self.systems[source_system] = self.systems.get(source_system, 0) + 1

    def record_failure(self) -> None:
        self.failed += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "systems": dict(sorted(self.systems.items())),
        }


@dataclass(frozen=True)
class MappingResult:
    records: list[dict[str, Any]]
    count: int
    skipped: int
    conversion_stats: ConversionStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": self.records,
            "count": self.count,
            "skipped": self.skipped,
            "conversion_stats": self.conversion_stats.to_dict(),
        }
