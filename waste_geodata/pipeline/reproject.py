"""Coordinate reference system detection, transformation, and region checks."""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Sequence

from pyproj import CRS, Transformer

from waste_geodata.common.constants import COORDINATE_PRECISION
from waste_geodata.common.crs_catalogue import CrsCatalogue
from waste_geodata.common.logging import log_event
from waste_geodata.common.models import ConvertedCoordinate, Detection, RegionBounds

LOGGER = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_finite(value: Real) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


class CrsDetector:
    """Guesses the source CRS of raw pairs and reprojects them to WGS84.

    The catalogue and region are fixed for the lifetime of the detector.
    Transformers are built lazily, one per source code, and kept on the
    instance.
    """

    def __init__(
        self,
        catalogue: CrsCatalogue,
        region: RegionBounds,
        *,
        validate_geographic: bool = False,
    ) -> None:
        self.catalogue = catalogue
        self.region = region
        self.validate_geographic = validate_geographic
        self._transformers: dict[str, Transformer] = {}

    def detect(self, x: float, y: float) -> Detection:
        for descriptor in self.catalogue.descriptors:
            if descriptor.detection is not None and descriptor.detection.contains(x, y):
                return Detection(code=descriptor.code)

        fallback = self.catalogue.fallback_code
        log_event(
            LOGGER,
            f"coordinate system not detected for [{x}, {y}], using {fallback}",
            level=logging.WARNING,
            event="CRS_FALLBACK",
            status="fallback",
            source_system=fallback,
        )
        return Detection(code=fallback, fallback_used=True)

    def _transformer(self, code: str) -> Transformer:
        transformer = self._transformers.get(code)
        if transformer is None:
            source = CRS.from_user_input(self.catalogue.get(code).definition)
            target = CRS.from_user_input(self.catalogue.get(self.catalogue.geographic_code).definition)
            transformer = Transformer.from_crs(source, target, always_xy=True)
            self._transformers[code] = transformer
        return transformer

    def transform(self, x: float, y: float, code: str) -> tuple[float, float]:
        """Project (x, y) from `code` to geographic (lon, lat), unrounded."""
        return self._transformer(code).transform(x, y, errcheck=True)

    def convert(self, coordinates: Sequence[Any] | None) -> ConvertedCoordinate:
        if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
            return ConvertedCoordinate.failure("Invalid coordinates")

        x, y = coordinates[0], coordinates[1]
        if not _is_number(x) or not _is_number(y):
            return ConvertedCoordinate.failure("Non-numeric coordinates")
        if not (_is_finite(x) and _is_finite(y)):
            return ConvertedCoordinate.failure("Non-finite coordinates")

        detection = self.detect(x, y)
        code = detection.code

        if code == self.catalogue.geographic_code:
            if self.validate_geographic and not self.region.contains(x, y):
                return ConvertedCoordinate.failure(
                    f"Geographic coordinates outside region bounds: [{x:.2f}, {y:.2f}]",
                    source_system=code,
                )
            return ConvertedCoordinate(longitude=x, latitude=y, source_system=code)

        try:
            longitude, latitude = self.transform(x, y, code)
        except Exception as exc:
            return ConvertedCoordinate.failure(
                f"Conversion error: {exc}",
                source_system=code,
                fallback_used=detection.fallback_used,
            )

        if not self.region.contains(longitude, latitude):
            return ConvertedCoordinate.failure(
                f"Converted coordinates outside region bounds: [{longitude:.2f}, {latitude:.2f}]",
                source_system=code,
                fallback_used=detection.fallback_used,
            )

        return ConvertedCoordinate(
            longitude=round(longitude, COORDINATE_PRECISION),
            latitude=round(latitude, COORDINATE_PRECISION),
            source_system=code,
            fallback_used=detection.fallback_used,
        )
