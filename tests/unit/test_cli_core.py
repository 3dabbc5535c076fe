import pytest

from waste_geodata.cli import parse_args


def test_parse_args_ingest_defaults():
    args = parse_args(["ingest", "points.geojson", "--entity", "collection_points"])
    assert args.command == "ingest"
    assert args.path == "points.geojson"
    assert args.format is None
    assert args.sink is None
    assert args.overlay_config_dir is None
    assert args.strict is False


def test_parse_args_accepts_overlay_config_dir():
    args = parse_args(["ingest", "a.csv", "--entity", "urban_furniture", "--overlay-config-dir", "config/live"])
    assert args.overlay_config_dir == "config/live"


def test_parse_args_convert_accepts_negative_longitude():
    args = parse_args(["convert", "-17.44", "14.69"])
    assert (args.x, args.y) == (-17.44, 14.69)


def test_parse_args_rejects_unknown_entity():
    with pytest.raises(SystemExit):
        parse_args(["ingest", "a.geojson", "--entity", "benches"])
