"""Image processing backend using PyVIPS.

This module provides the image capabilities tiling needs, all backed by
libvips: decoding the source image, Lanczos3 resampling, cutting tile
views and encoding tiles to disk.

Usage:
    from tilesplit.preprocess.backends import VIPSBackend

    img = VIPSBackend.load(Path("world.png"))
    level = VIPSBackend.resize(img, (1024, 1024))
    tile = VIPSBackend.crop(level, 256, 0, 256)
    VIPSBackend.save(tile, Path("2-1-0.png"), png_preset=2)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np

from tilesplit.config import (
    DEFAULT_PNG_PRESET,
    JPEG_QUALITY,
    PNG_PRESET_COMPRESSION,
    PNG_PRESET_MAX,
)
from tilesplit.errors import DecodeFailure, EncodeFailure

logger = logging.getLogger(__name__)

# pyvips is imported quietly in tilesplit/__init__.py first
_HAS_VIPS = False
_vips_import_error: str | None = None
pyvips: Any = None

try:
    import pyvips
    _HAS_VIPS = True
except (ImportError, OSError) as e:
    _vips_import_error = str(e)

#: Formats without an alpha channel
_OPAQUE_FORMATS = frozenset({"jpg", "jpeg"})

#: Formats that take a lossy quality setting
_LOSSY_FORMATS = frozenset({"jpg", "jpeg", "webp"})


def is_vips_available() -> bool:
    """Check if PyVIPS is available.

    Returns:
        True if pyvips is installed and working
    """
    return _HAS_VIPS


def _require_vips() -> None:
    if not _HAS_VIPS:
        raise RuntimeError(f"PyVIPS is not available: {_vips_import_error}")


class VIPSBackend:
    """PyVIPS-based image processing backend.

    Images are ``pyvips.Image`` objects. Operations build lazy pipelines;
    :meth:`materialize` renders one into memory so that many tiles can be
    cut from it without recomputing the resize for each.
    """

    @staticmethod
    def from_numpy(arr: np.ndarray) -> "pyvips.Image":
        """Convert a numpy array to pyvips format.

        Args:
            arr: numpy array (H, W, bands) or (H, W), uint8

        Returns:
            pyvips.Image with one band per channel
        """
        _require_vips()

        height, width = arr.shape[:2]
        bands = arr.shape[2] if arr.ndim == 3 else 1

        # Ensure contiguous array
        arr = np.ascontiguousarray(arr, dtype=np.uint8)

        return pyvips.Image.new_from_memory(
            arr.tobytes(),
            width,
            height,
            bands,
            "uchar"
        )

    @staticmethod
    def to_numpy(img: "pyvips.Image") -> np.ndarray:
        """Convert a pyvips image to numpy array.

        Args:
            img: pyvips.Image

        Returns:
            numpy array (H, W, bands) uint8
        """
        data = img.cast("uchar").write_to_memory()
        return np.ndarray(
            buffer=data,
            dtype=np.uint8,
            shape=(img.height, img.width, img.bands)
        )

    @staticmethod
    def load(path: Path) -> "pyvips.Image":
        """Open the source image.

        Random access is used because every zoom level resamples the
        same source. Truncated or damaged files raise on the first pixel
        read instead of decoding as filler.

        Raises:
            DecodeFailure: If the file is missing or cannot be decoded
        """
        _require_vips()
        try:
            return pyvips.Image.new_from_file(str(path), access="random", fail_on="error")
        except pyvips.error.Error as e:
            raise DecodeFailure(f"Problem opening the image {path}: {e}") from e

    @staticmethod
    def resize(img: "pyvips.Image", size: tuple[int, int]) -> "pyvips.Image":
        """Resize an image using Lanczos3 resampling.

        Args:
            img: pyvips.Image to resize
            size: Target size as (width, height)

        Returns:
            Resized pyvips.Image of exactly ``size``
        """
        target_width, target_height = size
        if (img.width, img.height) == (target_width, target_height):
            return img
        h_scale = target_width / img.width
        v_scale = target_height / img.height

        resized = img.resize(h_scale, vscale=v_scale, kernel="lanczos3")
        # Rounding in vips can leave the result a pixel over
        if resized.width != target_width or resized.height != target_height:
            resized = resized.crop(0, 0, target_width, target_height)
        return resized

    @staticmethod
    def materialize(img: "pyvips.Image") -> "pyvips.Image":
        """Render a lazy pipeline into an in-memory image.

        Raises:
            DecodeFailure: If the source pixels cannot be read
        """
        try:
            return img.copy_memory()
        except pyvips.error.Error as e:
            raise DecodeFailure(f"Problem decoding the image: {e}") from e

    @staticmethod
    def crop(img: "pyvips.Image", left: int, top: int, size: int) -> "pyvips.Image":
        """View of the ``size`` x ``size`` square at (left, top)."""
        return img.crop(left, top, size, size)

    @staticmethod
    def save(
        img: "pyvips.Image",
        path: Path,
        png_preset: int | None = None,
    ) -> None:
        """Save an image, choosing the encoder from the file suffix.

        Args:
            img: pyvips.Image to save
            path: Output path
            png_preset: Compression-effort preset for PNG output

        Raises:
            EncodeFailure: If the image cannot be encoded or written
        """
        fmt = path.suffix.lstrip(".").lower()
        if fmt == "png":
            VIPSBackend.save_png(img, path, png_preset)
            return

        options: dict[str, Any] = {}
        if fmt in _LOSSY_FORMATS:
            options["Q"] = JPEG_QUALITY
        # Flatten alpha channel for formats that cannot store it
        if fmt in _OPAQUE_FORMATS and img.bands in (2, 4):
            img = img.flatten()
        try:
            img.write_to_file(str(path), **options)
        except (pyvips.error.Error, OSError) as e:
            raise EncodeFailure(f"Problem writing {path}: {e}") from e

    @staticmethod
    def save_png(img: "pyvips.Image", path: Path, preset: int | None = None) -> None:
        """Save an image as lossless PNG.

        Args:
            img: pyvips.Image to save
            path: Output path
            preset: Compression effort 0-6, higher is smaller and slower

        Raises:
            EncodeFailure: If the image cannot be encoded or written
        """
        if preset is None:
            preset = DEFAULT_PNG_PRESET
        if not 0 <= preset <= PNG_PRESET_MAX:
            raise ValueError(f"PNG preset must be within 0-{PNG_PRESET_MAX}, got {preset}")
        try:
            img.pngsave(str(path), compression=PNG_PRESET_COMPRESSION[preset])
        except (pyvips.error.Error, OSError) as e:
            raise EncodeFailure(f"Problem writing {path}: {e}") from e


def get_backend() -> type[VIPSBackend]:
    """Get the image processing backend.

    Returns:
        VIPSBackend class

    Raises:
        RuntimeError: If PyVIPS is not available
    """
    if not _HAS_VIPS:
        raise RuntimeError(
            f"PyVIPS is required but not available: {_vips_import_error}\n"
            "Install pyvips with a bundled libvips: pip install 'pyvips[binary]'"
        )
    return VIPSBackend

