"""Cutting a resized level into tiles in Morton order."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from tilesplit.core.morton import decode, tiles_in_level, tiles_per_side
from tilesplit.core.pyramid_spec import PyramidSpec
from tilesplit.core.types import LevelSlice, TileCoord
from tilesplit.errors import IndexOutOfBounds

from .backends import VIPSBackend


@dataclass(frozen=True)
class Tile:
    """One tile cut from a level image.

    Attributes:
        zoom: Output zoom level
        x: Output column
        y: Output row
        index: Morton index within the level image it was cut from
        image: pyvips view of the tile's pixels
    """

    zoom: int
    x: int
    y: int
    index: int
    image: Any

    @property
    def coord(self) -> TileCoord:
        return TileCoord(self.zoom, self.x, self.y)

    @property
    def name(self) -> str:
        return f"{self.zoom}-{self.x}-{self.y}"


class TileWalker:
    """Streams the tiles of one level slice.

    Args:
        spec: Run description; supplies the tile size and, for sub-tile
            sources, the translation into the parent pyramid
    """

    def __init__(self, spec: PyramidSpec) -> None:
        self.spec = spec

    def iter_tiles(self, image: Any, level_slice: LevelSlice) -> Iterator[Tile]:
        """Yield the tiles of ``level_slice`` in ascending Morton order.

        Args:
            image: Resized pyvips.Image for ``level_slice.zoom``
            level_slice: Local index range to produce

        Raises:
            IndexOutOfBounds: If the slice or image does not fit the level grid
        """
        zoom = level_slice.zoom
        tile_size = self.spec.tile_size
        grid = tiles_per_side(zoom)

        if not 0 <= level_slice.start <= level_slice.end < tiles_in_level(zoom):
            raise IndexOutOfBounds(
                f"Slice {level_slice.start}-{level_slice.end} exceeds the "
                f"{grid}x{grid} grid of zoom {zoom}"
            )
        if image.width != grid * tile_size or image.height != grid * tile_size:
            raise IndexOutOfBounds(
                f"Zoom {zoom} image is {image.width}x{image.height} px, "
                f"expected {grid * tile_size} px"
            )

        for index in level_slice.local_index_range:
            x, y = decode(index)
            if x >= grid or y >= grid:
                raise IndexOutOfBounds(f"Morton index {index} outside zoom {zoom}")
            view = VIPSBackend.crop(image, x * tile_size, y * tile_size, tile_size)
            out = self.spec.translate(zoom, x, y)
            yield Tile(zoom=out.zoom, x=out.x, y=out.y, index=index, image=view)

    def iter_level(self, image: Any, zoom: int) -> Iterator[Tile]:
        """Yield the tiles the run needs from the ``zoom`` image (may be none)."""
        level_slice = self.spec.slice_for(zoom)
        if level_slice is None:
            return
        yield from self.iter_tiles(image, level_slice)
