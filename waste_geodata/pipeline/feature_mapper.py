"""Map an uploaded FeatureCollection onto entity records with conversion stats."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from waste_geodata.common.errors import InvalidInputError, NoValidFeaturesError
from waste_geodata.common.geometry import extract_coordinates
from waste_geodata.common.logging import log_event
from waste_geodata.common.models import ConversionStats, MappingResult
from waste_geodata.common.time_utils import utc_now
from waste_geodata.pipeline.entity_fields import ENTITY_FIELDS, FieldSpec, RecordContext, build_record
from waste_geodata.pipeline.reproject import CrsDetector

LOGGER = logging.getLogger(__name__)


def validate_feature_collection(geojson: Any) -> list:
    if not isinstance(geojson, dict):
        raise InvalidInputError("GeoJSON payload must be a JSON object")
    if geojson.get("type") != "FeatureCollection":
        raise InvalidInputError("GeoJSON type must be 'FeatureCollection'")
    features = geojson.get("features")
    if not isinstance(features, list):
        raise InvalidInputError("GeoJSON must contain a 'features' array")
    if not features:
        raise InvalidInputError("GeoJSON contains no features")
    return features


def _skip(stats: ConversionStats, entity_kind: str, index: int, reason: str, **fields: Any) -> None:
    stats.record_failure()
    log_event(
        LOGGER,
        f"feature {index} skipped: {reason}",
        level=logging.DEBUG,
        event="FEATURE_SKIPPED",
        status="skipped",
        entity=entity_kind,
        feature_index=index,
        **fields,
    )


def map_feature_collection(
    geojson: Any,
    entity_kind: str,
    detector: CrsDetector,
    *,
    field_specs: Mapping[str, tuple[FieldSpec, ...]] | None = None,
    timestamp: datetime | None = None,
) -> MappingResult:
    """Convert every feature of `geojson` into an `entity_kind` record.

    Structural problems with the payload raise `InvalidInputError` before any
    feature is looked at. Features whose geometry cannot be read or whose
    coordinates fail conversion are counted as failed and dropped; the batch
    carries on. Raises `NoValidFeaturesError` when nothing survives.
    """
    specs = field_specs or ENTITY_FIELDS
    if entity_kind not in specs:
        raise InvalidInputError(f"Unknown entity kind: {entity_kind}")
    features = validate_feature_collection(geojson)

    batch_timestamp = timestamp or utc_now()
    stats = ConversionStats(total=len(features))
    records: list[dict[str, Any]] = []

    for index, feature in enumerate(features, start=1):
        try:
            geometry = feature.get("geometry") if isinstance(feature, dict) else None
            coordinates = extract_coordinates(geometry)
            if coordinates is None:
                _skip(stats, entity_kind, index, "no usable geometry")
                continue

            converted = detector.convert(coordinates)
            if not converted.ok:
                _skip(stats, entity_kind, index, converted.error, source_system=converted.source_system)
                continue

            record = build_record(
                entity_kind,
                feature.get("properties"),
                longitude=converted.longitude,
                latitude=converted.latitude,
                context=RecordContext(index=index, timestamp=batch_timestamp),
                field_specs=specs,
            )
        except Exception as exc:
            _skip(stats, entity_kind, index, f"unexpected error: {exc}", error_code="FEATURE_ERROR")
            continue

        stats.record_success(converted.source_system)
        records.append(record)

    log_event(
        LOGGER,
        "feature mapping finished",
        event="MAPPING_DONE",
        status="ok" if records else "empty",
        entity=entity_kind,
        rows_in=stats.total,
        rows_out=len(records),
    )

    if not records:
        raise NoValidFeaturesError("No valid features found in GeoJSON after conversion")

    return MappingResult(
        records=records,
        count=len(records),
        skipped=stats.failed,
        conversion_stats=stats,
    )
