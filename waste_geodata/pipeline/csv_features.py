"""Synthesise a point FeatureCollection from tabular CSV uploads."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from waste_geodata.common.fs import read_csv_rows

LONGITUDE_COLUMN = "longitude"
LATITUDE_COLUMN = "latitude"


def _parse_float(value: str | None) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def rows_to_feature_collection(rows: Iterable[Mapping[str, str]]) -> dict:
    features = []
    for row in rows:
        lon = _parse_float(row.get(LONGITUDE_COLUMN))
        lat = _parse_float(row.get(LATITUDE_COLUMN))
        if lon is None or lat is None:
            continue
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
                "properties": dict(row),
            }
        )
    return {"type": "FeatureCollection", "features": features}


def read_csv_feature_collection(path: Path) -> dict:
    return rows_to_feature_collection(read_csv_rows(path))
