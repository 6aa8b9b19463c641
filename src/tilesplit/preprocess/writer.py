"""Writing tiles and whole-level images to the output directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from tilesplit.config import DEFAULT_PNG_PRESET, DEFAULT_TILE_FORMAT, PNG_PRESET_MAX, TILE_FORMATS
from tilesplit.core.types import TileCoord
from tilesplit.errors import InvalidConfiguration

from .backends import VIPSBackend
from .walker import Tile

logger = logging.getLogger(__name__)


def tile_filename(coord: TileCoord, tile_format: str) -> str:
    """File name of a tile: ``{zoom}-{x}-{y}.{ext}``."""
    return f"{coord.zoom}-{coord.x}-{coord.y}.{tile_format}"


def level_filename(zoom: int, tile_format: str) -> str:
    """File name of a whole resized level: ``{zoom}.{ext}``."""
    return f"{zoom}.{tile_format}"


class TileWriter:
    """Encodes tiles into a flat output directory.

    Each tile goes to its own pre-determined path, so concurrent writers
    never touch the same file.

    Args:
        output_dir: Directory to write into (created on :meth:`prepare`)
        tile_format: Output format / file extension
        png_preset: Compression-effort preset 0-6; PNG only, defaults to 2

    Raises:
        InvalidConfiguration: On an unknown format, or a preset for a
            format other than PNG
    """

    def __init__(
        self,
        output_dir: Path,
        tile_format: str = DEFAULT_TILE_FORMAT,
        png_preset: int | None = None,
    ) -> None:
        tile_format = tile_format.lower()
        if tile_format not in TILE_FORMATS:
            raise InvalidConfiguration(
                f"Unsupported tile format {tile_format!r} "
                f"(choose from {', '.join(sorted(TILE_FORMATS))})"
            )
        if tile_format != "png":
            if png_preset is not None:
                raise InvalidConfiguration(
                    f"A PNG preset cannot be used with tile format {tile_format!r}"
                )
        elif png_preset is None:
            png_preset = DEFAULT_PNG_PRESET
        elif not 0 <= png_preset <= PNG_PRESET_MAX:
            raise InvalidConfiguration(
                f"PNG preset must be within 0-{PNG_PRESET_MAX}, got {png_preset}"
            )

        self.output_dir = Path(output_dir)
        self.tile_format = tile_format
        self.png_preset = png_preset

    def prepare(self) -> None:
        """Create the output directory if needed."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def tile_path(self, coord: TileCoord) -> Path:
        return self.output_dir / tile_filename(coord, self.tile_format)

    def level_path(self, zoom: int) -> Path:
        return self.output_dir / level_filename(zoom, self.tile_format)

    def write_tile(self, tile: Tile) -> Path:
        """Encode one tile to its path.

        Raises:
            EncodeFailure: If the tile cannot be encoded or written
        """
        path = self.tile_path(tile.coord)
        self._save(tile.image, path)
        logger.debug("Wrote %s", path.name)
        return path

    def write_level(self, image: Any, zoom: int) -> Path:
        """Encode a whole resized level to ``{zoom}.{ext}``.

        Raises:
            EncodeFailure: If the image cannot be encoded or written
        """
        path = self.level_path(zoom)
        self._save(image, path)
        logger.info("Wrote level image %s", path.name)
        return path

    def _save(self, image: Any, path: Path) -> None:
        VIPSBackend.save(image, path, png_preset=self.png_preset)
