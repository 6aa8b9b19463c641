"""Centralized configuration for tilesplit.

All tunable parameters are defined here with sensible defaults.
Values can be overridden via environment variables.

Environment Variables:
    TILESPLIT_THREADS: Worker threads for resizing and tile writing (default: CPU count)
    TILESPLIT_VIPS_CONCURRENCY: VIPS internal thread count (default: 4)
    TILESPLIT_JPEG_QUALITY: Quality for lossy tile formats (default: 90)
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


def _get_env_int(name: str, default: int) -> int:
    """Get an integer from environment variable with fallback."""
    value = os.environ.get(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "Invalid integer for %s: %r, using default %d", name, value, default
            )
    return default


# =============================================================================
# Tile Generation Defaults
# =============================================================================

#: Default tile size in pixels
DEFAULT_TILE_SIZE: int = 256

#: Default output tile format (file extension)
DEFAULT_TILE_FORMAT: str = "png"

#: Default directory tiles are written to
DEFAULT_OUTPUT_DIR: str = "out"

#: Supported tile formats
TILE_FORMATS: frozenset[str] = frozenset({
    "png", "jpg", "jpeg", "webp", "tif", "tiff"
})


# =============================================================================
# Encoding Configuration
# =============================================================================

#: Default PNG compression-effort preset
DEFAULT_PNG_PRESET: int = 2

#: Highest PNG preset (slowest, smallest)
PNG_PRESET_MAX: int = 6

#: zlib compression level used for each PNG preset (index = preset)
PNG_PRESET_COMPRESSION: tuple[int, ...] = (1, 3, 6, 7, 8, 9, 9)

#: Quality for lossy tile formats (jpg, webp)
JPEG_QUALITY: int = _get_env_int("TILESPLIT_JPEG_QUALITY", 90)


# =============================================================================
# Concurrency Configuration
# =============================================================================

#: Threads used for per-level resizing and per-tile writing
DEFAULT_THREADS: int = _get_env_int("TILESPLIT_THREADS", os.cpu_count() or 1)

#: VIPS internal concurrency (threads), exported as VIPS_CONCURRENCY before
#: libvips starts
VIPS_CONCURRENCY: int = _get_env_int("TILESPLIT_VIPS_CONCURRENCY", 4)


# =============================================================================
# Validation
# =============================================================================


def _validate_config() -> None:
    """Validate configuration values and log warnings for out-of-range settings."""
    global DEFAULT_THREADS, JPEG_QUALITY, VIPS_CONCURRENCY

    if DEFAULT_THREADS < 1:
        logger.warning("DEFAULT_THREADS=%d is too low, clamping to 1", DEFAULT_THREADS)
        DEFAULT_THREADS = 1

    if VIPS_CONCURRENCY < 1:
        logger.warning("VIPS_CONCURRENCY=%d is too low, clamping to 1", VIPS_CONCURRENCY)
        VIPS_CONCURRENCY = 1

    if not 1 <= JPEG_QUALITY <= 100:
        clamped = min(max(JPEG_QUALITY, 1), 100)
        logger.warning(
            "JPEG_QUALITY=%d is out of range, clamping to %d", JPEG_QUALITY, clamped
        )
        JPEG_QUALITY = clamped


_validate_config()
