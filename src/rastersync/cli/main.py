"""CLI entry point for rastersync."""

from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path
from typing import Iterable, Optional

import requests

from rastersync.config import ConfigError, RasterSyncConfig, load_config
from rastersync.core.models import ServeConfig, SyncConfig
from rastersync.drivers import (
    DriverNotFoundError,
    LayerNotFoundError,
    ReadOnlySourceError,
    close_source,
    default_registry,
    open_reader,
)
from rastersync.formats import ZxyServerError
from rastersync.logging import configure_logging, get_logger
from rastersync.server import create_app, serve
from rastersync.sync import SyncManager
from rastersync.tiling import CopyBlockError, GeometryError, UnsupportedFormatError

LOGGER = get_logger(__name__)

RUNTIME_ERRORS = (
    ConfigError,
    CopyBlockError,
    DriverNotFoundError,
    GeometryError,
    LayerNotFoundError,
    ReadOnlySourceError,
    UnsupportedFormatError,
    ZxyServerError,
    OSError,
    sqlite3.Error,
    requests.RequestException,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Synchronize and serve raster tile pyramids")
    parser.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    subcommands = parser.add_subparsers(dest="command", required=True)

    sync = subcommands.add_parser(
        "sync",
        help="Create or update a tile store from another one over an area of interest",
    )
    sync.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a configuration file (YAML or JSON) with a 'sync' section",
    )
    sync.add_argument("--src", default=None, help="Source data source name")
    sync.add_argument("--srcdriver", default=None, help="Source driver (sniffed when omitted)")
    sync.add_argument("--srclayer", default=None, help="Source layer name (first layer when omitted)")
    sync.add_argument("--dst", default=None, help="Destination data source name")
    sync.add_argument("--dstdriver", default=None, help="Destination driver (sniffed when omitted)")
    sync.add_argument("--dstlayer", default=None, help="Destination layer name (default: data)")
    sync.add_argument("--levelmin", type=int, default=None, help="Minimum zoom level (default: 0)")
    sync.add_argument("--levelmax", type=int, default=None, help="Maximum zoom level (default: 3)")
    sync.add_argument("--aoi", default=None, help="Area of interest as WKT (default: whole world)")
    sync.add_argument(
        "--replace",
        action="store_true",
        default=None,
        help="Clear each level and replace existing tiles",
    )
    sync.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    serve_cmd = subcommands.add_parser("serve", help="Serve a tile layer over HTTP")
    serve_cmd.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a configuration file (YAML or JSON) with a 'serve' section",
    )
    serve_cmd.add_argument("--src", default=None, help="Source data source name")
    serve_cmd.add_argument("--srcdriver", default=None, help="Source driver (sniffed when omitted)")
    serve_cmd.add_argument("--srclayer", default=None, help="Source layer name (first layer when omitted)")
    serve_cmd.add_argument("--host", default=None, help="Bind address (default: 127.0.0.1)")
    serve_cmd.add_argument("--port", type=int, default=None, help="HTTP port (default: 8085)")
    serve_cmd.add_argument(
        "--zero-is-top",
        action="store_true",
        default=None,
        help="Use the OSM row convention (row 0 at the top) in tile URLs",
    )

    drivers = subcommands.add_parser("drivers", help="List registered tile source drivers")
    drivers.add_argument("--probe", default=None, help="Print the driver able to open this data source")
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    configure_logging(level=args.log_level, json_logs=args.log_json, log_file=args.log_file)

    try:
        if args.command == "sync":
            return _handle_sync(args)
        if args.command == "serve":
            return _handle_serve(args)
        if args.command == "drivers":
            return _handle_drivers(args)
    except RUNTIME_ERRORS as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1
    parser.error("Unknown command")
    return 1


def _load_optional_config(path: Optional[Path]) -> RasterSyncConfig:
    if path is None:
        return RasterSyncConfig()
    resolved = path.resolve()
    if not resolved.exists():
        raise SystemExit(f"Configuration file not found: {resolved}")
    return load_config(resolved)


def _sync_config(args: argparse.Namespace) -> SyncConfig:
    cfg = _load_optional_config(args.config).sync
    overrides = {
        "source": args.src,
        "source_driver": args.srcdriver,
        "source_layer": args.srclayer,
        "destination": args.dst,
        "destination_driver": args.dstdriver,
        "destination_layer": args.dstlayer,
        "level_min": args.levelmin,
        "level_max": args.levelmax,
        "aoi": args.aoi,
        "replace": args.replace,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    return cfg


def _serve_config(args: argparse.Namespace) -> ServeConfig:
    cfg = _load_optional_config(args.config).serve
    overrides = {
        "source": args.src,
        "source_driver": args.srcdriver,
        "source_layer": args.srclayer,
        "host": args.host,
        "port": args.port,
        "zero_is_top": args.zero_is_top,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    return cfg


def _handle_sync(args: argparse.Namespace) -> int:
    cfg = _sync_config(args)
    if not cfg.source:
        raise SystemExit("A source is required (--src or sync.source)")
    if not cfg.destination:
        raise SystemExit("A destination is required (--dst or sync.destination)")
    if cfg.level_max < cfg.level_min:
        raise SystemExit("--levelmax must be greater than or equal to --levelmin")

    manager = SyncManager(cfg, registry=default_registry(), progress=not args.no_progress)
    report = manager.run()

    LOGGER.info(
        "sync complete",
        extra={"processed": report.processed, "levels": report.by_level()},
    )
    return 0


def _handle_serve(args: argparse.Namespace) -> int:
    cfg = _serve_config(args)
    if not cfg.source:
        raise SystemExit("A source is required (--src or serve.source)")

    source, reader = open_reader(
        default_registry(),
        cfg.source,
        driver=cfg.source_driver,
        layer=cfg.source_layer,
    )
    LOGGER.info("connected to data set", extra={"source": cfg.source})
    try:
        app = create_app(reader, name=cfg.title or cfg.source, zero_is_top=cfg.zero_is_top)
        serve(app, host=cfg.host, port=cfg.port)
    finally:
        close_source(source)
    return 0


def _handle_drivers(args: argparse.Namespace) -> int:
    registry = default_registry()
    if args.probe:
        name = registry.find_driver_name(args.probe)
        if not name:
            LOGGER.error("no driver can open %s", args.probe)
            return 1
        print(name)
        return 0
    for name in registry.names():
        print(name)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
