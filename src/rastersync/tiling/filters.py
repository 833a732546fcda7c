"""Composable tile filters.

A filter answers "should this tile be skipped?". ``any_of`` and ``all_of``
combine filters without knowing what each one checks.
"""

from __future__ import annotations

from typing import Callable, Sequence

from .base import TileFilter, TileReader


class AnyFilter:
    """Exclude a tile when at least one sub-filter excludes it."""

    def __init__(self, filters: Sequence[TileFilter]) -> None:
        self._filters = tuple(filters)

    def excludes(self, level: int, x: int, y: int) -> bool:
        for tile_filter in self._filters:
            if tile_filter.excludes(level, x, y):
                return True
        return False


class AllFilter:
    """Exclude a tile only when every sub-filter excludes it.

    With no sub-filters every tile is excluded.
    """

    def __init__(self, filters: Sequence[TileFilter]) -> None:
        self._filters = tuple(filters)

    def excludes(self, level: int, x: int, y: int) -> bool:
        for tile_filter in self._filters:
            if not tile_filter.excludes(level, x, y):
                return False
        return True


class ContainsFilter:
    """Exclude tiles already present in a reader."""

    def __init__(self, reader: TileReader) -> None:
        self._reader = reader

    def excludes(self, level: int, x: int, y: int) -> bool:
        return self._reader.contains(level, x, y)


class CallableFilter:
    """Adapt a plain ``(level, x, y) -> bool`` function to a filter."""

    def __init__(self, func: Callable[[int, int, int], bool]) -> None:
        self._func = func

    def excludes(self, level: int, x: int, y: int) -> bool:
        return bool(self._func(level, x, y))


def any_of(*filters: TileFilter) -> AnyFilter:
    return AnyFilter(filters)


def all_of(*filters: TileFilter) -> AllFilter:
    return AllFilter(filters)
