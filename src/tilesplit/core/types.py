"""Shared type definitions for tilesplit core module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class TileCoord(NamedTuple):
    """Coordinate of a tile in the pyramid.

    Attributes:
        zoom: Zoom level (0 = a single tile)
        x: Column index (0-based)
        y: Row index (0-based)
    """

    zoom: int
    x: int
    y: int


@dataclass(frozen=True)
class ZoomSpan:
    """Inclusive range of zoom levels, ``start`` to ``end``."""

    start: int
    end: int

    @classmethod
    def single(cls, zoom: int) -> ZoomSpan:
        return cls(zoom, zoom)

    @property
    def levels(self) -> range:
        """Zoom levels in ascending order."""
        return range(self.start, self.end + 1)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class LevelSlice:
    """The part of one zoom level a run has to produce.

    Attributes:
        zoom: Zoom level
        start: First Morton index within the level (inclusive)
        end: Last Morton index within the level (inclusive)
    """

    zoom: int
    start: int
    end: int

    @property
    def local_index_range(self) -> range:
        """Morton indices covered by this slice, in ascending order."""
        return range(self.start, self.end + 1)

    @property
    def is_full(self) -> bool:
        """True if the slice covers every tile of its level."""
        return self.start == 0 and self.end == (1 << (2 * self.zoom)) - 1

    def __len__(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class SubTileOrigin:
    """Placement of the source image inside a larger conceptual pyramid.

    Attributes:
        x: Column of the source image in the parent grid
        y: Row of the source image in the parent grid
        zoom: Zoom level the produced tiles belong to (the parent zoom)
    """

    x: int
    y: int
    zoom: int
