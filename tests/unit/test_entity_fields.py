from datetime import datetime, timezone

import pytest

from waste_geodata.common.errors import ConfigError, InvalidInputError
from waste_geodata.pipeline.entity_fields import (
    ENTITY_FIELDS,
    RecordContext,
    build_record,
    to_number,
    with_extra_aliases,
)

CONTEXT = RecordContext(index=3, timestamp=datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc))


def _record(kind, properties, lon=-17.44, lat=14.69, field_specs=None):
    return build_record(
        kind,
        properties,
        longitude=lon,
        latitude=lat,
        context=CONTEXT,
        field_specs=field_specs,
    )


def test_collection_point_defaults():
    record = _record("collection_points", {})

    assert record == {
        "latitude": 14.69,
        "longitude": -17.44,
        "commune_id": None,
        "name": "Élément 3",
        "type": "bin",
        "capacity_kg": 0,
        "waste_type": "general",
        "status": "active",
    }


def test_collection_point_reads_localised_aliases():
    record = _record(
        "collection_points",
        {"nom": "Bac Médina", "capacite_kg": "240", "type_dechet": "plastique", "statut": "full", "COMMUNE_ID": 7},
    )

    assert record["name"] == "Bac Médina"
    assert record["capacity_kg"] == 240
    assert record["waste_type"] == "plastique"
    assert record["status"] == "full"
    assert record["commune_id"] == 7


def test_uppercase_alias_used_when_lowercase_missing():
    assert _record("collection_points", {"NOM": "Point HLM"})["name"] == "Point HLM"


def test_alias_priority_and_empty_values_are_skipped():
    record = _record("collection_points", {"name": "", "nom": None, "NAME": "Marché Sandaga", "NOM": "ignored"})

    assert record["name"] == "Marché Sandaga"


def test_numeric_field_falls_back_to_default_when_unparseable():
    assert _record("collection_points", {"capacity_kg": "beaucoup"})["capacity_kg"] == 0
    assert _record("collection_points", {"capacity_kg": "12.5"})["capacity_kg"] == 12.5


def test_urban_furniture_defaults_use_batch_timestamp():
    record = _record("urban_furniture", {"adresse": "Avenue Lamine Guèye"})

    assert record["type"] == "PRN"
    assert record["status"] == "good"
    assert record["location"] == "Avenue Lamine Guèye"
    assert record["install_date"] == "2026-03-01T08:30:00.000+00:00"
    assert record["last_maintenance_date"] is None
    assert record["capacity_kg"] == 0


def test_sweeping_route_fields_and_trailing_coordinates():
    record = _record(
        "sweeping_routes",
        {"IDENTIFIANT": "R-12", "equipe": "soir", "longueur_m": "1500", "DUREE_ESTIMEE": 45},
    )

    assert record["code"] == "R-12"
    assert record["shift"] == "soir"
    assert record["length_meters"] == 1500
    assert record["estimated_duration_minutes"] == 45
    assert record["status"] == "active"
    assert list(record)[-2:] == ["latitude", "longitude"]


def test_sweeping_route_defaults():
    record = _record("sweeping_routes", None)

    assert record["name"] == "Élément 3"
    assert record["code"] is None
    assert record["shift"] == "matin"
    assert record["length_meters"] == 0


def test_sweeping_route_omits_coordinates_when_missing():
    record = _record("sweeping_routes", {}, lon=None, lat=None)

    assert "latitude" not in record
    assert "longitude" not in record


def test_unknown_entity_kind_raises():
    with pytest.raises(InvalidInputError):
        _record("benches", {})


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("10", 10),
        (10.0, 10),
        ("2.5", 2.5),
        ("", None),
        ("abc", None),
        (None, None),
        (True, None),
        ("inf", None),
        (10**400, None),
    ],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_extra_aliases_are_appended_after_builtin_ones():
    specs = with_extra_aliases(ENTITY_FIELDS, {"collection_points": {"name": ["libelle", "nom"]}})

    name_spec = next(spec for spec in specs["collection_points"] if spec.field == "name")
    assert name_spec.aliases == ("name", "nom", "NAME", "NOM", "libelle")
    assert _record("collection_points", {"libelle": "Bac 9"}, field_specs=specs)["name"] == "Bac 9"
    assert ENTITY_FIELDS["collection_points"] is not specs["collection_points"]


def test_extra_aliases_reject_unknown_fields():
    with pytest.raises(ConfigError):
        with_extra_aliases(ENTITY_FIELDS, {"collection_points": {"colour": ["couleur"]}})
