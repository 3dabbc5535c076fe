"""CLI entrypoint for the waste geodata ingestion pipeline."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from waste_geodata.common.config_loader import ConfigBundle, load_config
from waste_geodata.common.constants import (
    ENTITY_KINDS,
    EXIT_HARD_FAIL,
    EXIT_PARTIAL,
    EXIT_SUCCESS,
    INPUT_FORMATS,
    SINK_TYPES,
)
from waste_geodata.common.crs_catalogue import build_default_catalogue
from waste_geodata.common.errors import ConfigError, IngestError, InvalidInputError
from waste_geodata.common.fs import read_json
from waste_geodata.common.ids import generate_run_id
from waste_geodata.common.logging import build_logger, log_event
from waste_geodata.common.time_utils import parse_timestamp
from waste_geodata.pipeline.csv_features import read_csv_feature_collection
from waste_geodata.pipeline.persistence import JsonFileSink, RecordSink, RestTableSink, upload_feature_collection
from waste_geodata.pipeline.reports import write_ingest_summary
from waste_geodata.pipeline.reproject import CrsDetector


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser("ingest", help="convert an uploaded dataset into entity records")
    ingest.add_argument("path")
    ingest.add_argument("--entity", required=True, choices=ENTITY_KINDS)
    ingest.add_argument("--format", default=None, choices=INPUT_FORMATS)
    ingest.add_argument("--sink", default=None, choices=SINK_TYPES)
    ingest.add_argument("--data-dir", default="./data")
    ingest.add_argument("--run-id", default=None)
    ingest.add_argument("--timestamp", default=None)
    ingest.add_argument("--strict", action="store_true")
    _add_common_args(ingest)

    convert = commands.add_parser("convert", help="detect and convert a single coordinate pair")
    convert.add_argument("x", type=float)
    convert.add_argument("y", type=float)
    _add_common_args(convert)

    return parser.parse_args(argv)


def _load_bundle(args: argparse.Namespace) -> ConfigBundle:
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None
    return load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)


def build_detector(bundle: ConfigBundle) -> CrsDetector:
    return CrsDetector(
        build_default_catalogue(),
        bundle.region,
        validate_geographic=bundle.validate_geographic,
    )


def _input_format(path: Path, requested: str | None) -> str:
    if requested:
        return requested
    if path.suffix.lower() == ".csv":
        return "csv"
    return "geojson"


def load_feature_collection(path: Path, input_format: str):
    if not path.exists():
        raise InvalidInputError(f"Input file not found: {path}")
    if input_format == "csv":
        return read_csv_feature_collection(path)
    try:
        return read_json(path)
    except ValueError as exc:
        raise InvalidInputError(f"Input is not valid JSON: {exc}") from exc


def build_sink(sink_type: str, bundle: ConfigBundle, data_dir: Path) -> RecordSink:
    if sink_type == "file":
        return JsonFileSink(data_dir)
    base_url = bundle.persistence.get("base_url")
    if not base_url:
        raise ConfigError("persistence.base_url is required for the rest sink")
    api_key_env = bundle.persistence.get("api_key_env") or "WASTE_GEODATA_API_KEY"
    api_key = os.environ.get(api_key_env)
    if not api_key:
        raise ConfigError(f"Missing API key environment variable: {api_key_env}")
    return RestTableSink(base_url, api_key)


def run_ingest(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    source_path = Path(args.path)

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    log_event(logger, "ingest start", stage="ingest", entity=args.entity, event="INGEST_START", status="ok")

    upload = None
    sink: RecordSink | None = None
    try:
        timestamp = parse_timestamp(args.timestamp)
        bundle = _load_bundle(args)
        detector = build_detector(bundle)
        sink = build_sink(args.sink or bundle.persistence["sink"], bundle, data_dir)
        geojson = load_feature_collection(source_path, _input_format(source_path, args.format))
        upload = upload_feature_collection(
            geojson,
            args.entity,
            detector,
            sink,
            field_specs=bundle.field_specs,
            timestamp=timestamp,
        )
    except IngestError as exc:
        log_event(
            logger,
            f"ingest failed: {exc}",
            stage="ingest",
            entity=args.entity,
            event="INGEST_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        write_ingest_summary(
            data_dir,
            run_id=run_id,
            entity_kind=args.entity,
            source_path=str(source_path),
            upload=None,
            error=exc,
        )
        return EXIT_HARD_FAIL
    finally:
        if sink is not None:
            sink.close()

    stats = upload["conversion_stats"]
    write_ingest_summary(
        data_dir,
        run_id=run_id,
        entity_kind=args.entity,
        source_path=str(source_path),
        upload=upload,
    )
    log_event(
        logger,
        "ingest end",
        stage="ingest",
        entity=args.entity,
        event="INGEST_END",
        status="partial" if stats["failed"] else "ok",
        rows_in=stats["total"],
        rows_out=upload["count"],
    )

    if stats["failed"]:
        return EXIT_HARD_FAIL if args.strict else EXIT_PARTIAL
    return EXIT_SUCCESS


def run_convert(args: argparse.Namespace) -> int:
    build_logger(generate_run_id(), level=args.log_level)
    detector = build_detector(_load_bundle(args))
    result = detector.convert([args.x, args.y])
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return EXIT_SUCCESS if result.ok else EXIT_HARD_FAIL


def run_command(args: argparse.Namespace) -> int:
    if args.command == "ingest":
        return run_ingest(args)
    if args.command == "convert":
        return run_convert(args)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except IngestError:
        return EXIT_HARD_FAIL
    except Exception:
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
