"""Partitioning of a multi-level tile sequence into per-level slices.

The levels of a zoom span are laid end to end in ascending zoom order, each
level contributing ``4 ** z`` tiles in Morton order. A position in that
sequence is a *global tile index*. Any contiguous global range, given
explicitly or derived from a "worker K of N" split, maps back onto one
:class:`LevelSlice` per level it touches.

Example: the span 0-5 holds 1 + 4 + 16 + 64 + 256 + 1024 = 1365 tiles.
Split across four workers, worker 1 gets global ``0..340`` (levels 0 to 4
in full) and worker 4 gets ``1023..1364``, which is level 5 locally
``682..1023``.
"""

from __future__ import annotations

import logging

from tilesplit.errors import InvalidRange

from .morton import MAX_COORD_BITS, tiles_in_level
from .types import LevelSlice, ZoomSpan

logger = logging.getLogger(__name__)


def validate_zoom_span(span: ZoomSpan) -> None:
    """Raise InvalidRange unless ``span`` is a non-empty ascending range."""
    if span.start < 0 or span.end > MAX_COORD_BITS:
        raise InvalidRange(
            f"Zoom range {span} must lie within 0-{MAX_COORD_BITS}"
        )
    if span.start > span.end:
        raise InvalidRange(f"Zoom range {span} is empty (start > end)")


def level_buckets(span: ZoomSpan) -> list[tuple[int, int]]:
    """``(zoom, tile_count)`` for every level of the span, ascending."""
    return [(zoom, tiles_in_level(zoom)) for zoom in span.levels]


def total_tiles(span: ZoomSpan) -> int:
    """Number of tiles across all levels of the span."""
    return sum(count for _zoom, count in level_buckets(span))


def worker_range(total: int, worker_index: int, worker_count: int) -> tuple[int, int]:
    """Inclusive global range assigned to worker ``worker_index`` of ``worker_count``.

    Every worker gets ``total // worker_count`` tiles; the last one also
    absorbs the remainder so that the ranges of all workers cover
    ``0 .. total - 1`` without gaps or overlaps.

    Args:
        total: Number of tiles being split
        worker_index: 1-based worker number
        worker_count: Number of workers

    Raises:
        InvalidRange: If the worker index or count is out of bounds
    """
    if worker_count < 1:
        raise InvalidRange(f"Worker count must be at least 1, got {worker_count}")
    if not 1 <= worker_index <= worker_count:
        raise InvalidRange(
            f"Worker index {worker_index} is not within 1-{worker_count}"
        )
    if worker_count > total:
        raise InvalidRange(
            f"Cannot split {total} tiles across {worker_count} workers"
        )

    quota = total // worker_count
    lo = quota * (worker_index - 1)
    if worker_index == worker_count:
        hi = total - 1
    else:
        hi = lo + quota - 1
    return lo, hi


def worker_ranges(total: int, worker_count: int) -> list[tuple[int, int]]:
    """Inclusive global ranges of all ``worker_count`` workers, in order."""
    return [
        worker_range(total, index, worker_count)
        for index in range(1, worker_count + 1)
    ]


def slice_range(span: ZoomSpan, lo: int, hi: int) -> tuple[LevelSlice, ...]:
    """Translate the inclusive global range ``lo..hi`` into per-level slices.

    Walks the levels in ascending order keeping a running tile total. The
    level containing ``lo`` starts at ``lo`` minus the tiles before it, the
    level containing ``hi`` ends at ``hi`` minus the tiles before it, and
    every level in between is included whole.

    Raises:
        InvalidRange: If the range is empty or exceeds the span's tiles
    """
    validate_zoom_span(span)
    total = total_tiles(span)
    if not 0 <= lo <= hi < total:
        raise InvalidRange(
            f"Target range {lo}-{hi} is outside 0-{total - 1} "
            f"for zoom range {span}"
        )

    slices: list[LevelSlice] = []
    tiles_before = 0
    for zoom, count in level_buckets(span):
        first = tiles_before
        last = tiles_before + count - 1
        tiles_before += count
        if last < lo:
            continue
        if first > hi:
            break
        slices.append(
            LevelSlice(zoom=zoom, start=max(lo, first) - first, end=min(hi, last) - first)
        )

    logger.debug(
        "Global range %d-%d of zoom %s -> %s",
        lo, hi, span, ", ".join(f"z{s.zoom}[{s.start}-{s.end}]" for s in slices),
    )
    return tuple(slices)
