"""Driver registry for rastersync tile sources."""

from .registry import (
    DriverNotFoundError,
    DriverRegistrationError,
    DriverRegistry,
    LayerNotFoundError,
    ReadOnlySourceError,
    close_source,
    default_registry,
    open_layer_at,
    open_reader,
    open_writer,
)

__all__ = [
    "DriverNotFoundError",
    "DriverRegistrationError",
    "DriverRegistry",
    "LayerNotFoundError",
    "ReadOnlySourceError",
    "close_source",
    "default_registry",
    "open_layer_at",
    "open_reader",
    "open_writer",
]
