"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from waste_geodata.common.fs import write_json


def _coverage_percent(success: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round((success / total) * 100, 2)


def write_ingest_summary(
    data_dir: Path,
    *,
    run_id: str,
    entity_kind: str,
    source_path: str,
    upload: dict[str, Any] | None,
    error: Exception | None = None,
) -> Path:
    stats = (upload or {}).get("conversion_stats") or {"total": 0, "success": 0, "failed": 0, "systems": {}}

    if error is not None:
        status = "error"
    elif stats["failed"] > 0:
        status = "partial"
    else:
        status = "success"

    payload = {
        "run_id": run_id,
        "entity": entity_kind,
        "source_path": source_path,
        "status": status,
        "count": (upload or {}).get("count", 0),
        "skipped": (upload or {}).get("skipped", 0),
        "conversion_stats": stats,
        "coverage_percent": _coverage_percent(stats["success"], stats["total"]),
        "error": None
        if error is None
        else {"code": getattr(error, "error_code", "UNEXPECTED_ERROR"), "message": str(error)},
    }

    summary_path = data_dir / "out" / "reports" / f"{run_id}_summary.json"
    write_json(summary_path, payload)
    return summary_path
