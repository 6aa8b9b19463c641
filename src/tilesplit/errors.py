"""Exception types raised by tilesplit."""

from __future__ import annotations


class TileSplitError(Exception):
    """Base class for all tilesplit errors."""


class InvalidConfiguration(TileSplitError, ValueError):
    """Zoom span, tile range or worker directive violates the pyramid arithmetic.

    Raised before any image work begins.
    """


class InvalidRange(InvalidConfiguration):
    """A tile range or worker index/count falls outside the zoom span."""


class InvalidHierarchy(InvalidConfiguration):
    """A parent/sub-tile directive does not fit the source zoom level."""


class DimensionMismatch(TileSplitError, ValueError):
    """Source image is not square or not ``tile_size << source_zoom`` wide."""


class DecodeFailure(TileSplitError, OSError):
    """The source image could not be read or decoded."""


class EncodeFailure(TileSplitError, OSError):
    """A tile or level image could not be encoded or written."""


class IndexOutOfBounds(TileSplitError, AssertionError):
    """A tile index fell outside its level grid.

    This is a defect, not a user error: the partitioner and the walker
    disagree about range semantics.
    """
