"""Per-zoom resampling of the source image."""

from __future__ import annotations

import logging
from typing import Any

from tilesplit.core.pyramid_spec import PyramidSpec
from tilesplit.errors import DimensionMismatch

from .backends import VIPSBackend

logger = logging.getLogger(__name__)


class PyramidResizer:
    """Produces one resampled copy of the source image per zoom level.

    Every level is resized straight from the original source with Lanczos3,
    never from a neighbouring level, so levels are independent and can be
    computed concurrently.

    Args:
        spec: Run description (tile size, source zoom, levels)
    """

    def __init__(self, spec: PyramidSpec) -> None:
        self.spec = spec

    def check_dimensions(self, image: Any) -> None:
        """Reject a source image that does not match the source zoom level.

        Raises:
            DimensionMismatch: If the image is not square or its side is not
                ``tile_size << source_zoom``
        """
        if image.width != image.height:
            raise DimensionMismatch(
                f"Image is not square: {image.width} x {image.height} px"
            )
        if image.width != self.spec.source_side:
            raise DimensionMismatch(
                f"Image of size {image.width}x{image.height} cannot be split into "
                f"tiles of size {self.spec.tile_size} at zoom level "
                f"{self.spec.source_zoom} (expected {self.spec.source_side} px)"
            )

    def resize_level(self, image: Any, zoom: int) -> Any:
        """Resample the source to ``tile_size << zoom`` pixels and render it.

        Args:
            image: Source pyvips.Image (already dimension-checked)
            zoom: Target zoom level

        Returns:
            In-memory pyvips.Image for the level
        """
        side = self.spec.level_side(zoom)
        logger.info("Resizing zoom %d to %d x %d px...", zoom, side, side)
        resized = VIPSBackend.resize(image, (side, side))
        level_image = VIPSBackend.materialize(resized)
        logger.debug("Zoom %d resized", zoom)
        return level_image
