"""Tile pyramid arithmetic: Morton indexing, range partitioning, run description."""

from .morton import decode, encode, tiles_in_level, tiles_per_side
from .partition import slice_range, total_tiles, worker_range, worker_ranges
from .pyramid_spec import PyramidSpec
from .types import LevelSlice, SubTileOrigin, TileCoord, ZoomSpan

__all__ = [
    "decode",
    "encode",
    "tiles_in_level",
    "tiles_per_side",
    "slice_range",
    "total_tiles",
    "worker_range",
    "worker_ranges",
    "PyramidSpec",
    "LevelSlice",
    "SubTileOrigin",
    "TileCoord",
    "ZoomSpan",
]
