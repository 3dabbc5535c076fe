from datetime import datetime, timezone
from pathlib import Path

import pytest

from waste_geodata.common.constants import DEFAULT_REGION_BBOX
from waste_geodata.common.crs_catalogue import build_default_catalogue
from waste_geodata.common.errors import NoValidFeaturesError, PersistenceError
from waste_geodata.common.fs import read_json
from waste_geodata.common.http import HttpClient, RetryConfig
from waste_geodata.common.models import RegionBounds
from waste_geodata.pipeline.persistence import (
    JsonFileSink,
    RestTableSink,
    insert_records,
    upload_feature_collection,
)
from waste_geodata.pipeline.reproject import CrsDetector

GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "geometry": {"type": "Point", "coordinates": [-17.44, 14.69]}, "properties": {"nom": "Bac 1"}},
        {"type": "Feature", "geometry": None, "properties": {}},
    ],
}


class FakeResponse:
    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.text = ""

    def json(self):
        return self._payload


class FailingSink:
    def insert(self, table, records):
        raise RuntimeError("duplicate key value violates unique constraint")


class RecordingSink:
    def __init__(self):
        self.calls = []

    def insert(self, table, records):
        self.calls.append((table, records))
        return {"inserted": len(records)}


def _detector() -> CrsDetector:
    return CrsDetector(build_default_catalogue(), RegionBounds.from_dict(DEFAULT_REGION_BBOX))


def test_json_file_sink_writes_table_file(tmp_path: Path):
    sink = JsonFileSink(tmp_path)

    out_path = sink.insert("collection_points", [{"name": "Bac 1"}])

    payload = read_json(Path(out_path))
    assert payload == {"table": "collection_points", "count": 1, "rows": [{"name": "Bac 1"}]}


def test_insert_records_wraps_sink_errors():
    with pytest.raises(PersistenceError, match="^Insertion failed: duplicate key"):
        insert_records(FailingSink(), "collection_points", [{"name": "x"}])


def test_rest_table_sink_posts_records_with_api_key(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    captured = {}

    def fake_request(**kwargs):
        captured.update(kwargs)
        return FakeResponse(201, [{"id": 1}])

    monkeypatch.setattr(client.session, "request", fake_request)
    sink = RestTableSink("https://db.example.test/", "secret-key", client=client)

    data = sink.insert("sweeping_routes", [{"name": "R1"}])

    assert data == [{"id": 1}]
    assert captured["method"] == "POST"
    assert captured["url"] == "https://db.example.test/rest/v1/sweeping_routes"
    assert captured["json"] == [{"name": "R1"}]
    assert captured["headers"]["apikey"] == "secret-key"
    assert captured["headers"]["Authorization"] == "Bearer secret-key"


def test_upload_feature_collection_inserts_mapped_records():
    sink = RecordingSink()

    payload = upload_feature_collection(
        GEOJSON,
        "collection_points",
        _detector(),
        sink,
        timestamp=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )

    assert payload["count"] == 1
    assert payload["skipped"] == 1
    assert payload["data"] == {"inserted": 1}
    assert payload["conversion_stats"] == {"total": 2, "success": 1, "failed": 1, "systems": {"EPSG:4326": 1}}
    table, records = sink.calls[0]
    assert table == "collection_points"
    assert records[0]["name"] == "Bac 1"


def test_upload_surfaces_persistence_errors():
    with pytest.raises(PersistenceError):
        upload_feature_collection(GEOJSON, "collection_points", _detector(), FailingSink())


def test_upload_never_inserts_an_empty_record_set():
    sink = RecordingSink()
    geojson = {"type": "FeatureCollection", "features": [{"type": "Feature", "geometry": None}]}

    with pytest.raises(NoValidFeaturesError):
        upload_feature_collection(geojson, "collection_points", _detector(), sink)

    assert sink.calls == []


def test_rest_table_sink_closes_only_its_own_client(monkeypatch):
    owned = RestTableSink("https://db.example.test", "secret-key")
    closed = []
    monkeypatch.setattr(owned.client.session, "close", lambda: closed.append("owned"))

    shared_client = HttpClient()
    monkeypatch.setattr(shared_client.session, "close", lambda: closed.append("shared"))
    shared = RestTableSink("https://db.example.test", "secret-key", client=shared_client)

    owned.close()
    shared.close()

    assert closed == ["owned"]
