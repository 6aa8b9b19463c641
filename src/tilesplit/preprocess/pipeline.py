"""Tile pyramid generation from a single square source image."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from tilesplit.config import DEFAULT_THREADS, DEFAULT_TILE_FORMAT
from tilesplit.core.pyramid_spec import PyramidSpec
from tilesplit.core.types import LevelSlice
from tilesplit.errors import DecodeFailure, EncodeFailure

from .backends import VIPSBackend
from .resizer import PyramidResizer
from .walker import TileWalker
from .writer import TileWriter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class SplitResult:
    """Outcome of one run.

    Attributes:
        tiles_written: Number of tiles written
        levels_written: Number of whole-level images written
        errors: ``(name, message)`` for every tile or level that failed
    """

    tiles_written: int = 0
    levels_written: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class TileSplitter:
    """Cuts a source image into the tiles described by a PyramidSpec.

    Zoom levels are resized concurrently, each straight from the source.
    As soon as a level exists its tiles are cut and written on a shared
    tile pool, and the level's pixels are released once its last tile is
    written. A failed tile write is recorded and does not stop its
    siblings.

    Args:
        spec: Run description
        writer: Destination for tiles
        threads: Worker threads for levels and for tiles
    """

    def __init__(
        self,
        spec: PyramidSpec,
        writer: TileWriter,
        threads: int = DEFAULT_THREADS,
    ) -> None:
        self.spec = spec
        self.writer = writer
        self.threads = max(1, threads)
        self._resizer = PyramidResizer(spec)
        self._walker = TileWalker(spec)
        self._lock = threading.Lock()
        self._cancelled = threading.Event()

    def split(
        self,
        source_path: Path,
        progress_callback: ProgressCallback | None = None,
        save_resize: bool = False,
    ) -> SplitResult:
        """Decode ``source_path`` and split it.

        Args:
            source_path: Path to the square source image
            progress_callback: Optional callback(stage, current, total); it may
                raise InterruptedError to cancel the run
            save_resize: Write one image per level instead of tiles

        Raises:
            DecodeFailure: If the source cannot be read
            DimensionMismatch: If the source does not fit the source zoom
        """
        source_path = Path(source_path)
        if progress_callback:
            progress_callback("load", 0, 1)
        logger.info("Loading %s...", source_path.name)
        image = VIPSBackend.load(source_path)
        logger.info("Loaded %s: %d x %d px", source_path.name, image.width, image.height)
        self._resizer.check_dimensions(image)
        # Decode every pixel now so a corrupt source fails before any output
        image = VIPSBackend.materialize(image)
        return self.split_image(image, progress_callback, save_resize=save_resize)

    def split_image(
        self,
        image: Any,
        progress_callback: ProgressCallback | None = None,
        save_resize: bool = False,
    ) -> SplitResult:
        """Split an already decoded pyvips.Image.

        See :meth:`split`.
        """
        self._resizer.check_dimensions(image)
        self.writer.prepare()
        self._cancelled.clear()

        slices = self.spec.slices
        result = SplitResult()
        level_total = len(slices)
        tile_total = 0 if save_resize else self.spec.tile_count
        counters = {"levels": 0, "tiles": 0}

        def report(stage: str) -> None:
            if progress_callback is None:
                return
            with self._lock:
                counters[stage] += 1
                current = counters[stage]
            total = level_total if stage == "levels" else tile_total
            progress_callback(stage, current, total)

        if progress_callback:
            progress_callback("levels", 0, level_total)
            if not save_resize:
                progress_callback("tiles", 0, tile_total)

        level_pool = ThreadPoolExecutor(
            max_workers=min(self.threads, level_total), thread_name_prefix="level"
        )
        tile_pool = ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix="tile")
        try:
            if save_resize:
                futures = {
                    level_pool.submit(self._save_level, image, s, result, report): s
                    for s in slices
                }
            else:
                futures = {
                    level_pool.submit(
                        self._tile_level, image, s, tile_pool, result, report
                    ): s
                    for s in slices
                }

            for future in as_completed(futures):
                level_slice = futures[future]
                try:
                    future.result()
                except (DecodeFailure, EncodeFailure) as e:
                    logger.error("Zoom %d failed: %s", level_slice.zoom, e)
                    with self._lock:
                        result.errors.append((f"zoom {level_slice.zoom}", str(e)))
        except BaseException:
            # Cancellation or a defect: stop queued work, keep what is written
            self._cancelled.set()
            tile_pool.shutdown(wait=False, cancel_futures=True)
            level_pool.shutdown(wait=True, cancel_futures=True)
            tile_pool.shutdown(wait=True)
            raise
        else:
            level_pool.shutdown(wait=True)
            tile_pool.shutdown(wait=True)

        logger.info(
            "Finished: %d tiles, %d level images, %d failures",
            result.tiles_written, result.levels_written, len(result.errors),
        )
        return result

    def _tile_level(
        self,
        image: Any,
        level_slice: LevelSlice,
        tile_pool: ThreadPoolExecutor,
        result: SplitResult,
        report: Callable[[str], None],
    ) -> None:
        """Resize one level, then write its tiles on the tile pool."""
        if self._cancelled.is_set():
            return
        level_image = self._resizer.resize_level(image, level_slice.zoom)
        report("levels")

        futures: dict[Future, str] = {}
        for tile in self._walker.iter_tiles(level_image, level_slice):
            if self._cancelled.is_set():
                break
            futures[tile_pool.submit(self.writer.write_tile, tile)] = tile.name
        logger.info(
            "Zoom %d: writing %d tiles (Morton %d-%d)",
            level_slice.zoom, len(futures), level_slice.start, level_slice.end,
        )

        # result() raises CancelledError once the tile pool drops queued writes
        try:
            for future, name in futures.items():
                try:
                    future.result()
                except EncodeFailure as e:
                    logger.error("Failed to write tile %s: %s", name, e)
                    with self._lock:
                        result.errors.append((name, str(e)))
                else:
                    with self._lock:
                        result.tiles_written += 1
                report("tiles")
        except CancelledError:
            logger.debug("Zoom %d cancelled", level_slice.zoom)
        except BaseException:
            self._cancelled.set()
            for future in futures:
                future.cancel()
            raise

    def _save_level(
        self,
        image: Any,
        level_slice: LevelSlice,
        result: SplitResult,
        report: Callable[[str], None],
    ) -> None:
        """Resize one level and write it as a single image."""
        if self._cancelled.is_set():
            return
        level_image = self._resizer.resize_level(image, level_slice.zoom)
        self.writer.write_level(level_image, level_slice.zoom)
        with self._lock:
            result.levels_written += 1
        report("levels")


def split_image_file(
    source_path: Path,
    spec: PyramidSpec,
    output_dir: Path,
    tile_format: str = DEFAULT_TILE_FORMAT,
    png_preset: int | None = None,
    threads: int = DEFAULT_THREADS,
    progress_callback: ProgressCallback | None = None,
    save_resize: bool = False,
) -> SplitResult:
    """Split one image file into tiles using TileSplitter.

    Args:
        source_path: Path to the square source image
        spec: Run description
        output_dir: Output directory
        tile_format: Output format / file extension
        png_preset: PNG compression-effort preset
        threads: Worker threads
        progress_callback: Progress callback function
        save_resize: Write one image per level instead of tiles

    Returns:
        SplitResult with counts and per-tile failures
    """
    writer = TileWriter(output_dir, tile_format=tile_format, png_preset=png_preset)
    splitter = TileSplitter(spec, writer, threads=threads)
    return splitter.split(source_path, progress_callback, save_resize=save_resize)
