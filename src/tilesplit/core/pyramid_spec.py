"""Run description for one tiling invocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tilesplit.errors import InvalidHierarchy, InvalidRange

from .morton import decode, tiles_in_level, tiles_per_side
from .partition import slice_range, total_tiles, validate_zoom_span, worker_range
from .types import LevelSlice, SubTileOrigin, TileCoord, ZoomSpan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PyramidSpec:
    """Immutable description of which tiles a run produces.

    Build it with one of the factories rather than directly:

    - :meth:`for_range` for an explicit global tile range (default: all tiles)
    - :meth:`for_worker` for worker K of N splitting the span evenly
    - :meth:`for_sub_tile` when the source is one tile of a deeper pyramid

    All three validate eagerly and end up with the same ``slices``.

    Attributes:
        tile_size: Side length of one tile in pixels
        source_zoom: Zoom level whose image is ``tile_size << source_zoom`` wide
        zoom_span: Zoom levels to produce
        global_range: Inclusive global tile range across ``zoom_span``
        sub_tile_origin: Placement in a larger pyramid, if any
        slices: One LevelSlice per zoom level the run touches
    """

    tile_size: int
    source_zoom: int
    zoom_span: ZoomSpan
    global_range: tuple[int, int]
    sub_tile_origin: SubTileOrigin | None = None
    slices: tuple[LevelSlice, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.tile_size < 1:
            raise InvalidRange(f"Tile size must be positive, got {self.tile_size}")
        if self.source_zoom < 0:
            raise InvalidRange(f"Zoom level must not be negative, got {self.source_zoom}")
        validate_zoom_span(self.zoom_span)
        if self.zoom_span.end > self.source_zoom:
            raise InvalidRange(
                f"Zoom range {self.zoom_span} has levels above the input "
                f"zoom level {self.source_zoom}"
            )
        origin = self.sub_tile_origin
        if origin is not None:
            if origin.zoom <= self.source_zoom:
                raise InvalidHierarchy(
                    f"Parent zoom level {origin.zoom} must be greater "
                    f"than the input zoom level {self.source_zoom}"
                )
            side = tiles_per_side(origin.zoom - self.source_zoom)
            if not (0 <= origin.x < side and 0 <= origin.y < side):
                raise InvalidHierarchy(
                    f"Sub-tile origin ({origin.x}, {origin.y}) is outside the "
                    f"{side}x{side} grid of input images at parent zoom {origin.zoom}"
                )
            if self.zoom_span != ZoomSpan.single(self.source_zoom):
                raise InvalidHierarchy(
                    "A sub-tile image can only be sliced at its own zoom level"
                )
        lo, hi = self.global_range
        object.__setattr__(self, "slices", slice_range(self.zoom_span, lo, hi))

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def for_range(
        cls,
        tile_size: int,
        source_zoom: int,
        zoom_span: ZoomSpan | None = None,
        global_range: tuple[int, int] | None = None,
    ) -> PyramidSpec:
        """Produce ``global_range`` of ``zoom_span``.

        Args:
            tile_size: Tile size in pixels
            source_zoom: Zoom level of the input image
            zoom_span: Levels to produce (default: only ``source_zoom``)
            global_range: Inclusive global range (default: every tile)
        """
        span = zoom_span if zoom_span is not None else ZoomSpan.single(source_zoom)
        if global_range is None:
            validate_zoom_span(span)
            global_range = (0, total_tiles(span) - 1)
        return cls(tile_size, source_zoom, span, global_range)

    @classmethod
    def for_worker(
        cls,
        tile_size: int,
        source_zoom: int,
        worker_index: int,
        worker_count: int,
        zoom_span: ZoomSpan | None = None,
    ) -> PyramidSpec:
        """Produce the share of worker ``worker_index`` (1-based) of ``worker_count``."""
        span = zoom_span if zoom_span is not None else ZoomSpan.single(source_zoom)
        validate_zoom_span(span)
        lo, hi = worker_range(total_tiles(span), worker_index, worker_count)
        logger.info(
            "Worker %d/%d takes global tiles %d-%d of zoom %s",
            worker_index, worker_count, lo, hi, span,
        )
        return cls(tile_size, source_zoom, span, (lo, hi))

    @classmethod
    def for_sub_tile(
        cls,
        tile_size: int,
        source_zoom: int,
        parent_zoom: int,
        sub_tile_index: int,
    ) -> PyramidSpec:
        """Produce every tile of a source that is one sub-image of a deeper level.

        The conceptual image at ``parent_zoom`` is cut into ``4 ** (parent_zoom -
        source_zoom)`` source-sized images in Morton order; the input is the one
        at ``sub_tile_index``. Its tiles are labelled with ``parent_zoom`` and
        shifted to their place in the parent grid.

        Raises:
            InvalidHierarchy: If ``parent_zoom <= source_zoom`` or the index
                does not exist at that depth
        """
        if parent_zoom <= source_zoom:
            raise InvalidHierarchy(
                f"Parent zoom level {parent_zoom} must be greater than the "
                f"input zoom level {source_zoom}"
            )
        max_index = tiles_in_level(parent_zoom - source_zoom) - 1
        if not 0 <= sub_tile_index <= max_index:
            raise InvalidHierarchy(
                f"Sub-tile index {sub_tile_index} is not within 0-{max_index} "
                f"for parent zoom {parent_zoom} and input zoom {source_zoom}"
            )
        x, y = decode(sub_tile_index)
        span = ZoomSpan.single(source_zoom)
        return cls(
            tile_size,
            source_zoom,
            span,
            (0, tiles_in_level(source_zoom) - 1),
            sub_tile_origin=SubTileOrigin(x=x, y=y, zoom=parent_zoom),
        )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def source_side(self) -> int:
        """Required side length of the source image in pixels."""
        return self.tile_size << self.source_zoom

    @property
    def tile_count(self) -> int:
        """Number of tiles this run produces."""
        lo, hi = self.global_range
        return hi - lo + 1

    def level_side(self, zoom: int) -> int:
        """Side length in pixels of the resized image for ``zoom``."""
        return self.tile_size << zoom

    def slice_for(self, zoom: int) -> LevelSlice | None:
        """The slice for ``zoom``, or None if the run does not touch it."""
        for level_slice in self.slices:
            if level_slice.zoom == zoom:
                return level_slice
        return None

    def output_zoom(self, zoom: int) -> int:
        """Zoom label written for tiles cut from the ``zoom`` image."""
        if self.sub_tile_origin is not None:
            return self.sub_tile_origin.zoom
        return zoom

    def translate(self, zoom: int, x: int, y: int) -> TileCoord:
        """Map a local tile position to its coordinate in the output pyramid."""
        origin = self.sub_tile_origin
        if origin is None:
            return TileCoord(zoom, x, y)
        side = tiles_per_side(self.source_zoom)
        return TileCoord(origin.zoom, origin.x * side + x, origin.y * side + y)
