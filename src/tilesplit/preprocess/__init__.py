"""Preprocessing pipeline for cutting a square image into a tile pyramid."""

from .backends import (
    is_vips_available,
    VIPSBackend,
)
from .pipeline import (
    SplitResult,
    TileSplitter,
    split_image_file,
)
from .resizer import PyramidResizer
from .walker import Tile, TileWalker
from .writer import TileWriter, level_filename, tile_filename

__all__ = [
    "is_vips_available",
    "VIPSBackend",
    "SplitResult",
    "TileSplitter",
    "split_image_file",
    "PyramidResizer",
    "Tile",
    "TileWalker",
    "TileWriter",
    "level_filename",
    "tile_filename",
]
