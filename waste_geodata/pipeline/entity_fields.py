"""Alias tables mapping feature properties onto entity records."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Mapping

from waste_geodata.common.errors import ConfigError, InvalidInputError


@dataclass(frozen=True)
class RecordContext:
    index: int
    timestamp: datetime


@dataclass(frozen=True)
class FieldSpec:
    field: str
    aliases: tuple[str, ...]
    default: Any = None
    coerce: Callable[[Any], Any] | None = None

    def resolve_default(self, context: RecordContext) -> Any:
        if callable(self.default):
            return self.default(context)
        return self.default


def _lookup_first(mapping: Mapping[str, Any], candidates: tuple[str, ...]) -> object | None:
    for key in candidates:
        if key in mapping and mapping[key] not in (None, ""):
            return mapping[key]
    return None


def to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


def _default_name(context: RecordContext) -> str:
    return f"Élément {context.index}"


def _default_timestamp(context: RecordContext) -> str:
    return context.timestamp.isoformat(timespec="milliseconds")


NAME = FieldSpec("name", ("name", "nom", "NAME", "NOM"), default=_default_name)
COMMUNE_ID = FieldSpec("commune_id", ("commune_id", "COMMUNE_ID"))
STATUS_ALIASES = ("status", "statut", "STATUS", "STATUT")
CAPACITY_KG = FieldSpec(
    "capacity_kg",
    ("capacity_kg", "capacite_kg", "CAPACITY_KG"),
    default=0,
    coerce=to_number,
)

ENTITY_FIELDS: dict[str, tuple[FieldSpec, ...]] = {
    "collection_points": (
        COMMUNE_ID,
        NAME,
        FieldSpec("type", ("type", "TYPE"), default="bin"),
        CAPACITY_KG,
        FieldSpec("waste_type", ("waste_type", "type_dechet", "WASTE_TYPE"), default="general"),
        FieldSpec("status", STATUS_ALIASES, default="active"),
    ),
    "urban_furniture": (
        COMMUNE_ID,
        FieldSpec("type", ("type", "TYPE"), default="PRN"),
        NAME,
        FieldSpec("location", ("location", "adresse", "LOCATION", "ADRESSE"), default=""),
        FieldSpec(
            "install_date",
            ("install_date", "date_installation", "INSTALL_DATE"),
            default=_default_timestamp,
        ),
        FieldSpec(
            "last_maintenance_date",
            ("last_maintenance_date", "derniere_maintenance", "LAST_MAINTENANCE"),
        ),
        CAPACITY_KG,
        FieldSpec("status", STATUS_ALIASES, default="good"),
    ),
    "sweeping_routes": (
        NAME,
        FieldSpec("code", ("code", "CODE", "identifiant", "IDENTIFIANT")),
        COMMUNE_ID,
        FieldSpec("shift", ("shift", "equipe", "SHIFT", "EQUIPE"), default="matin"),
        FieldSpec(
            "length_meters",
            ("length_meters", "longueur_m", "LENGTH_METERS", "LONGUEUR_M"),
            default=0,
            coerce=to_number,
        ),
        FieldSpec(
            "estimated_duration_minutes",
            ("estimated_duration_minutes", "duree_estimee_min", "ESTIMATED_DURATION", "DUREE_ESTIMEE"),
            default=0,
            coerce=to_number,
        ),
        FieldSpec("status", STATUS_ALIASES, default="active"),
    ),
}

# Entities whose records carry coordinates ahead of the mapped fields.
COORDINATES_FIRST = {"collection_points", "urban_furniture"}


def with_extra_aliases(
    specs: dict[str, tuple[FieldSpec, ...]],
    extra: Mapping[str, Mapping[str, list[str]]],
) -> dict[str, tuple[FieldSpec, ...]]:
    """Append configured aliases after the built-in ones, per entity field."""
    merged: dict[str, tuple[FieldSpec, ...]] = {}
    for kind, fields in specs.items():
        entity_extra = extra.get(kind) or {}
        known = {spec.field for spec in fields}
        unknown = set(entity_extra) - known
        if unknown:
            raise ConfigError(f"Unknown fields for {kind}: {', '.join(sorted(unknown))}")
        merged[kind] = tuple(
            replace(spec, aliases=tuple(dict.fromkeys(spec.aliases + tuple(entity_extra[spec.field]))))
            if spec.field in entity_extra
            else spec
            for spec in fields
        )
    return merged


def resolve_field(spec: FieldSpec, properties: Mapping[str, Any], context: RecordContext) -> Any:
    value = _lookup_first(properties, spec.aliases)
    if value is None:
        return spec.resolve_default(context)
    if spec.coerce is None:
        return value
    coerced = spec.coerce(value)
    if coerced is None:
        return spec.resolve_default(context)
    return coerced


def build_record(
    entity_kind: str,
    properties: Mapping[str, Any] | None,
    *,
    longitude: float | None,
    latitude: float | None,
    context: RecordContext,
    field_specs: Mapping[str, tuple[FieldSpec, ...]] | None = None,
) -> dict[str, Any]:
    specs = (field_specs or ENTITY_FIELDS).get(entity_kind)
    if specs is None:
        raise InvalidInputError(f"Unknown entity kind: {entity_kind}")
    properties = properties or {}

    record: dict[str, Any] = {}
    if entity_kind in COORDINATES_FIRST:
        record["latitude"] = latitude
        record["longitude"] = longitude
    for spec in specs:
        record[spec.field] = resolve_field(spec, properties, context)
    if entity_kind not in COORDINATES_FIRST and longitude is not None and latitude is not None:
        record["latitude"] = latitude
        record["longitude"] = longitude
    return record
