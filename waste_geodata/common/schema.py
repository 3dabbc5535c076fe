"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from waste_geodata.common.constants import ENTITY_KINDS, SINK_TYPES
from waste_geodata.common.errors import ConfigError

PERSISTENCE_KEYS = {"sink", "base_url", "api_key_env"}


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    _assert_mapping(obj, ctx)
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _validate_bbox(bbox: dict, allow_unknown: bool) -> None:
    bbox_keys = {"min_lon", "max_lon", "min_lat", "max_lat"}
    _assert_required_keys(bbox, bbox_keys, "region.bbox_wgs84")
    _assert_no_unknown_keys(bbox, bbox_keys, "region.bbox_wgs84", allow_unknown)
    for key, value in bbox.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"region.bbox_wgs84.{key} must be a number")
    if bbox["min_lon"] > bbox["max_lon"] or bbox["min_lat"] > bbox["max_lat"]:
        raise ConfigError("region.bbox_wgs84 minimums must not exceed maximums")


def _validate_aliases(kind: str, aliases: dict) -> None:
    _assert_mapping(aliases, f"entities.{kind}.aliases")
    for field, values in aliases.items():
        if not isinstance(values, list) or not all(isinstance(v, str) and v for v in values):
            raise ConfigError(f"entities.{kind}.aliases.{field} must be a list of non-empty strings")


def validate_ingest_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"region", "crs", "entities", "persistence"}
    _assert_required_keys(cfg, top_required, "ingest config")
    _assert_no_unknown_keys(cfg, top_required, "ingest config", allow_unknown)

    _assert_required_keys(cfg["region"], {"name", "bbox_wgs84"}, "region")
    _assert_no_unknown_keys(cfg["region"], {"name", "bbox_wgs84"}, "region", allow_unknown)
    _validate_bbox(cfg["region"]["bbox_wgs84"], allow_unknown)

    _assert_required_keys(cfg["crs"], {"validate_geographic"}, "crs")
    _assert_no_unknown_keys(cfg["crs"], {"validate_geographic"}, "crs", allow_unknown)
    if not isinstance(cfg["crs"]["validate_geographic"], bool):
        raise ConfigError("crs.validate_geographic must be a boolean")

    _assert_mapping(cfg["entities"], "entities")
    _assert_no_unknown_keys(cfg["entities"], set(ENTITY_KINDS), "entities", allow_unknown=False)
    for kind, entity_cfg in cfg["entities"].items():
        _assert_required_keys(entity_cfg, {"aliases"}, f"entities.{kind}")
        _assert_no_unknown_keys(entity_cfg, {"aliases"}, f"entities.{kind}", allow_unknown)
        _validate_aliases(kind, entity_cfg["aliases"] or {})

    _assert_required_keys(cfg["persistence"], {"sink"}, "persistence")
    _assert_no_unknown_keys(cfg["persistence"], PERSISTENCE_KEYS, "persistence", allow_unknown)
    if cfg["persistence"]["sink"] not in SINK_TYPES:
        raise ConfigError(f"persistence.sink must be one of: {', '.join(SINK_TYPES)}")
    if cfg["persistence"]["sink"] == "rest" and not cfg["persistence"].get("base_url"):
        raise ConfigError("persistence.base_url is required for the rest sink")

    return cfg
