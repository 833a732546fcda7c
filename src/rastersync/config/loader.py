"""Configuration management with YAML and JSON support."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from rastersync.core.models import ServeConfig, SyncConfig


class ConfigError(RuntimeError):
    """Raised when a configuration file is malformed."""


@dataclass
class RasterSyncConfig:
    """Top-level configuration object for rastersync commands."""

    sync: SyncConfig = field(default_factory=SyncConfig)
    serve: ServeConfig = field(default_factory=ServeConfig)

    def resolve_relative_paths(self, base_dir: Path) -> None:
        """Resolve relative local paths against the provided base directory."""

        self.sync.source = _resolve_local(self.sync.source, base_dir)
        self.sync.destination = _resolve_local(self.sync.destination, base_dir)
        self.serve.source = _resolve_local(self.serve.source, base_dir)


class ConfigLoader:
    """Load configuration files in YAML or JSON format."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or Path.cwd()

    def load(self, path: Path | str) -> RasterSyncConfig:
        """Parse a configuration file and return a populated dataclass."""

        config_path = self._resolve_path(Path(path))
        payload = self._load_payload(config_path)
        config = self._build_config(payload)
        config.resolve_relative_paths(config_path.parent)
        return config

    def _resolve_path(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return (self._base_dir / path).resolve()

    def _load_payload(self, path: Path) -> Dict[str, Any]:
        suffix = path.suffix.lower()
        if suffix in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as handle:
                payload = yaml.safe_load(handle) or {}
        elif suffix == ".json":
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle) or {}
        else:
            raise ConfigError(f"Unsupported configuration format: {suffix}")
        if not isinstance(payload, dict):
            raise ConfigError("configuration root must be a mapping")
        return payload

    def _build_config(self, payload: Dict[str, Any]) -> RasterSyncConfig:
        sync_data = _section(payload, "sync")
        for key in ("level_min", "level_max"):
            if key in sync_data and sync_data[key] is not None:
                sync_data[key] = int(sync_data[key])
        if "replace" in sync_data:
            sync_data["replace"] = bool(sync_data["replace"])
        sync = SyncConfig(**_known(SyncConfig, sync_data, "sync"))
        if sync.level_max < sync.level_min:
            raise ConfigError("sync.level_max must be greater than or equal to sync.level_min")

        serve_data = _section(payload, "serve")
        if "port" in serve_data and serve_data["port"] is not None:
            serve_data["port"] = int(serve_data["port"])
        if "zero_is_top" in serve_data:
            serve_data["zero_is_top"] = bool(serve_data["zero_is_top"])
        serve = ServeConfig(**_known(ServeConfig, serve_data, "serve"))

        return RasterSyncConfig(sync=sync, serve=serve)


def _section(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = payload.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{name} section must be a mapping")
    return dict(section)


def _known(cls: type, data: Dict[str, Any], name: str) -> Dict[str, Any]:
    allowed = {item.name for item in fields(cls)}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(f"unknown {name} option(s): {', '.join(unknown)}")
    return data


def _resolve_local(dsn: str, base_dir: Path) -> str:
    # URLs and absolute paths are left untouched
    if not dsn or "://" in dsn:
        return dsn
    path = Path(dsn)
    if path.is_absolute():
        return dsn
    return str(base_dir / path)


def load_config(path: Path | str, *, base_dir: Optional[Path] = None) -> RasterSyncConfig:
    """Convenience wrapper around :class:`ConfigLoader`."""

    loader = ConfigLoader(base_dir=base_dir)
    return loader.load(path)
