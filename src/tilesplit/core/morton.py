"""Z-order (Morton) indexing of tiles within one zoom level.

A tile's index interleaves the bits of its coordinates: bit ``2k`` of the
index is bit ``k`` of ``x`` and bit ``2k + 1`` is bit ``k`` of ``y``. For a
level ``z`` the indices ``0 .. 4**z - 1`` cover the ``2**z x 2**z`` grid
exactly once, and any contiguous run of indices is a spatially compact
block of tiles.

    >>> encode(3, 5)
    39
    >>> decode(39)
    (3, 5)
"""

from __future__ import annotations

#: Widest coordinate supported, in bits (indices use twice as many)
MAX_COORD_BITS = 32

_MAX_COORD = (1 << MAX_COORD_BITS) - 1
_MAX_INDEX = (1 << (2 * MAX_COORD_BITS)) - 1


def _spread(v: int) -> int:
    """Insert a zero bit above every bit of a 32-bit value."""
    v = (v | (v << 16)) & 0x0000FFFF0000FFFF
    v = (v | (v << 8)) & 0x00FF00FF00FF00FF
    v = (v | (v << 4)) & 0x0F0F0F0F0F0F0F0F
    v = (v | (v << 2)) & 0x3333333333333333
    v = (v | (v << 1)) & 0x5555555555555555
    return v


def _compact(v: int) -> int:
    """Inverse of :func:`_spread`: gather the even bits of a 64-bit value."""
    v &= 0x5555555555555555
    v = (v | (v >> 1)) & 0x3333333333333333
    v = (v | (v >> 2)) & 0x0F0F0F0F0F0F0F0F
    v = (v | (v >> 4)) & 0x00FF00FF00FF00FF
    v = (v | (v >> 8)) & 0x0000FFFF0000FFFF
    v = (v | (v >> 16)) & 0x00000000FFFFFFFF
    return v


def encode(x: int, y: int) -> int:
    """Morton index of the tile at column ``x``, row ``y``."""
    if not (0 <= x <= _MAX_COORD and 0 <= y <= _MAX_COORD):
        raise ValueError(f"Tile coordinate ({x}, {y}) out of range")
    return _spread(x) | (_spread(y) << 1)


def decode(index: int) -> tuple[int, int]:
    """Tile ``(x, y)`` for a Morton index."""
    if not 0 <= index <= _MAX_INDEX:
        raise ValueError(f"Morton index {index} out of range")
    return _compact(index), _compact(index >> 1)


def tiles_per_side(zoom: int) -> int:
    """Number of tile columns (and rows) at a zoom level."""
    return 1 << zoom


def tiles_in_level(zoom: int) -> int:
    """Number of tiles at a zoom level, ``4 ** zoom``."""
    return 1 << (2 * zoom)
