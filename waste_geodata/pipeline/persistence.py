"""Record sinks and the map-then-insert upload flow."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Protocol

from waste_geodata.common.errors import PersistenceError
from waste_geodata.common.fs import write_json
from waste_geodata.common.http import HttpClient
from waste_geodata.common.logging import log_event
from waste_geodata.pipeline.entity_fields import FieldSpec
from waste_geodata.pipeline.feature_mapper import map_feature_collection
from waste_geodata.pipeline.reproject import CrsDetector

LOGGER = logging.getLogger(__name__)


class RecordSink(Protocol):
    def insert(self, table: str, records: list[dict[str, Any]]) -> Any:
        ...

    def close(self) -> None:
        ...


class JsonFileSink:
    """Writes each table's records to `<data_dir>/out/<table>.json`."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def insert(self, table: str, records: list[dict[str, Any]]) -> str:
        out_path = self.data_dir / "out" / f"{table}.json"
        write_json(out_path, {"table": table, "count": len(records), "rows": records})
        return str(out_path)

    def close(self) -> None:
        pass


class RestTableSink:
    """Bulk insert into a PostgREST-style `/rest/v1/<table>` endpoint."""

    def __init__(self, base_url: str, api_key: str, client: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._owns_client = client is None
        self.client = client or HttpClient()

    def table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def insert(self, table: str, records: list[dict[str, Any]]) -> Any:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Prefer": "return=representation",
        }
        return self.client.post_json(self.table_url(table), payload=records, headers=headers)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()


def insert_records(sink: RecordSink, table: str, records: list[dict[str, Any]]) -> Any:
    try:
        return sink.insert(table, records)
    except Exception as exc:
        raise PersistenceError(f"Insertion failed: {exc}") from exc


def upload_feature_collection(
    geojson: Any,
    entity_kind: str,
    detector: CrsDetector,
    sink: RecordSink,
    *,
    field_specs: Mapping[str, tuple[FieldSpec, ...]] | None = None,
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    result = map_feature_collection(
        geojson,
        entity_kind,
        detector,
        field_specs=field_specs,
        timestamp=timestamp,
    )
    data = insert_records(sink, entity_kind, result.records)
    log_event(
        LOGGER,
        f"inserted {result.count} records into {entity_kind}",
        event="RECORDS_INSERTED",
        status="ok",
        entity=entity_kind,
        rows_in=result.conversion_stats.total,
        rows_out=result.count,
    )
    payload = result.to_dict()
    payload["data"] = data
    return payload
