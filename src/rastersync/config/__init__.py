"""Configuration loading utilities for rastersync."""

from .loader import ConfigError, ConfigLoader, RasterSyncConfig, load_config

__all__ = ["ConfigError", "ConfigLoader", "RasterSyncConfig", "load_config"]
