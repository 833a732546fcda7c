"""Driver registry mapping short names to tile source drivers."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from rastersync.logging import get_logger
from rastersync.tiling.base import Driver, TileReader, TileReadWriter, TileSource, WritableTileSource

LOGGER = get_logger(__name__)


class DriverRegistrationError(RuntimeError):
    """Raised when a driver is registered twice or is missing."""


class DriverNotFoundError(RuntimeError):
    """Raised when opening a source with an unknown driver name."""


class LayerNotFoundError(RuntimeError):
    """Raised when a requested layer does not exist in a source."""


class ReadOnlySourceError(RuntimeError):
    """Raised when writing is requested from a source that cannot be written."""


class DriverRegistry:
    """Thread-safe mapping of driver names to drivers.

    Drivers are registered once at start-up; registering the same name twice
    is a programming error.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._drivers: Dict[str, Driver] = {}

    def register(self, name: str, driver: Optional[Driver]) -> None:
        with self._lock:
            if driver is None:
                raise DriverRegistrationError("cannot register a missing driver")
            if name in self._drivers:
                raise DriverRegistrationError(f"driver {name!r} is already registered")
            self._drivers[name] = driver

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._drivers)

    def lookup(self, name: str) -> Driver:
        with self._lock:
            driver = self._drivers.get(name)
        if driver is None:
            raise DriverNotFoundError(f"unknown driver {name!r}")
        return driver

    def find_driver_name(self, dsn: str) -> str:
        """Return the first driver, in name order, able to open ``dsn``."""

        for name in self.names():
            with self._lock:
                driver = self._drivers.get(name)
            if driver is not None and driver.can_open(dsn):
                return name
        return ""

    def open(self, driver_name: str, dsn: str) -> TileSource:
        driver = self.lookup(driver_name)
        LOGGER.debug("opening tile source", extra={"driver": driver_name, "dsn": dsn})
        return driver.open_tile_source(dsn)


def open_layer_at(source: TileSource, index: int) -> TileReader:
    """Open the layer at position ``index`` of ``source``."""

    layers = source.list_layers()
    if index < 0 or index >= len(layers):
        raise LayerNotFoundError(f"no layer at index {index} (source has {len(layers)})")
    return source.open_layer(layers[index])


def open_reader(
    registry: DriverRegistry,
    dsn: str,
    *,
    driver: str = "",
    layer: str = "",
) -> tuple[TileSource, TileReader]:
    """Open ``dsn`` and return the source with the reader of the requested layer.

    The driver is sniffed from ``dsn`` when not given; the first layer is used
    when no layer name is given.
    """

    source = registry.open(driver or registry.find_driver_name(dsn), dsn)
    try:
        if layer:
            reader = source.open_layer(layer)
        else:
            reader = open_layer_at(source, 0)
    except Exception:
        close_source(source)
        raise
    return source, reader


def open_writer(
    registry: DriverRegistry,
    dsn: str,
    *,
    driver: str = "",
    layer: str,
) -> tuple[TileSource, TileReadWriter]:
    """Open ``dsn`` and create (or open for writing) the named layer."""

    source = registry.open(driver or registry.find_driver_name(dsn), dsn)
    try:
        if not isinstance(source, WritableTileSource):
            raise ReadOnlySourceError(f"driver for {dsn!r} does not allow writing")
        writer = source.create_layer(layer)
    except Exception:
        close_source(source)
        raise
    return source, writer


def close_source(source: object) -> None:
    """Close ``source`` when it holds resources."""

    close = getattr(source, "close", None)
    if callable(close):
        close()


_default_lock = threading.Lock()
_default_registry: Optional[DriverRegistry] = None


def default_registry() -> DriverRegistry:
    """Return the process-wide registry holding the built-in drivers."""

    global _default_registry
    with _default_lock:
        if _default_registry is None:
            from rastersync.formats import register_builtin_drivers

            registry = DriverRegistry()
            register_builtin_drivers(registry)
            _default_registry = registry
        return _default_registry
