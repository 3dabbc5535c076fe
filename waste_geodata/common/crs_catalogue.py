"""Fixed catalogue of the reference systems recognised during ingestion."""

from __future__ import annotations

from dataclasses import dataclass

from waste_geodata.common.constants import (
    DETECTION_RANGES,
    FALLBACK_CRS,
    GEOGRAPHIC_CRS,
    LAMBERT_SENEGAL_CRS,
    PROJ_DEFINITIONS,
    UTM_27N_CRS,
    UTM_28N_CRS,
)
from waste_geodata.common.errors import ConfigError
from waste_geodata.common.models import CrsDescriptor, DetectionRange

CATALOGUE_ORDER = (
    (GEOGRAPHIC_CRS, "geographic", "WGS84"),
    (UTM_28N_CRS, "projected", "UTM zone 28N"),
    (UTM_27N_CRS, "projected", "UTM zone 27N"),
    (LAMBERT_SENEGAL_CRS, "projected", "Lambert Senegal"),
)


@dataclass(frozen=True)
class CrsCatalogue:
    """Ordered, immutable set of descriptors.

    Order is detection priority: the first descriptor whose range contains a
    pair wins, which is how the UTM 28N / 27N overlap is resolved.
    """

    descriptors: tuple[CrsDescriptor, ...]
    geographic_code: str
    fallback_code: str

    def __post_init__(self) -> None:
        codes = [descriptor.code for descriptor in self.descriptors]
        dupes = {code for code in codes if codes.count(code) > 1}
        if dupes:
            raise ConfigError(f"Duplicate CRS codes: {', '.join(sorted(dupes))}")
        for code in (self.geographic_code, self.fallback_code):
            if code not in codes:
                raise ConfigError(f"CRS code not in catalogue: {code}")

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(descriptor.code for descriptor in self.descriptors)

    def get(self, code: str) -> CrsDescriptor:
        for descriptor in self.descriptors:
            if descriptor.code == code:
                return descriptor
        raise ConfigError(f"Unknown CRS code: {code}")


def build_default_catalogue() -> CrsCatalogue:
    descriptors = tuple(
        CrsDescriptor(
            code=code,
            kind=kind,
            label=label,
            definition=PROJ_DEFINITIONS[code],
            detection=DetectionRange(*DETECTION_RANGES[code]),
        )
        for code, kind, label in CATALOGUE_ORDER
    )
    return CrsCatalogue(
        descriptors=descriptors,
        geographic_code=GEOGRAPHIC_CRS,
        fallback_code=FALLBACK_CRS,
    )
