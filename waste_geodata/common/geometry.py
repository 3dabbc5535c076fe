"""Geometry helpers."""

from __future__ import annotations

import logging
from typing import Any

from waste_geodata.common.logging import log_event

LOGGER = logging.getLogger(__name__)

# Number of list levels between `coordinates` and the representative pair.
GEOMETRY_NESTING = {
    "Point": 0,
    "LineString": 1,
    "MultiPoint": 1,
    "Polygon": 2,
    "MultiLineString": 2,
    "MultiPolygon": 3,
}


def extract_coordinates(geometry: dict[str, Any] | None) -> list | None:
    """Return the first leaf coordinate pair of a GeoJSON geometry.

    Only one representative position is needed per feature, so for lines and
    polygons this is the first vertex of the first line or ring. Returns None
    for missing, malformed or unsupported geometries instead of raising.
    """
    if not isinstance(geometry, dict):
        return None
    coordinates = geometry.get("coordinates")
    if not coordinates:
        return None

    geometry_type = geometry.get("type")
    depth = GEOMETRY_NESTING.get(geometry_type)
    if depth is None:
        log_event(
            LOGGER,
            f"unsupported geometry type: {geometry_type}",
            level=logging.WARNING,
            event="UNSUPPORTED_GEOMETRY",
            status="skipped",
        )
        return None

    current = coordinates
    for _ in range(depth):
        if not isinstance(current, list) or not current or not isinstance(current[0], list):
            return None
        current = current[0]
    return current
