"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from waste_geodata.common.errors import ConfigError
from waste_geodata.common.fs import read_yaml
from waste_geodata.common.models import RegionBounds
from waste_geodata.common.schema import validate_ingest_config
from waste_geodata.pipeline.entity_fields import ENTITY_FIELDS, FieldSpec, with_extra_aliases

CONFIG_FILENAME = "ingest.yml"


@dataclass(frozen=True)
class ConfigBundle:
    region_name: str
    region: RegionBounds
    validate_geographic: bool
    field_specs: dict[str, tuple[FieldSpec, ...]]
    persistence: dict[str, Any]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> ConfigBundle:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config must be a mapping: {config_dir / CONFIG_FILENAME}")
    cfg = validate_ingest_config(cfg, allow_unknown=allow_unknown)

    extra_aliases = {kind: entity_cfg.get("aliases") or {} for kind, entity_cfg in cfg["entities"].items()}
    return ConfigBundle(
        region_name=cfg["region"]["name"],
        region=RegionBounds.from_dict(cfg["region"]["bbox_wgs84"]),
        validate_geographic=cfg["crs"]["validate_geographic"],
        field_specs=with_extra_aliases(ENTITY_FIELDS, extra_aliases),
        persistence=dict(cfg["persistence"]),
    )
