"""tilesplit - Cut one large square image into a slippy-map tile pyramid."""

__version__ = "0.1.0"


# Suppress libvips module-loading warnings (jxl, magick, poppler) during import.
# Must run before any pyvips import anywhere in the package.
def _import_pyvips_quiet():
    """Import pyvips with C-level stderr suppressed to hide module warnings."""
    import logging
    import os
    import sys

    from tilesplit.config import VIPS_CONCURRENCY

    _logger = logging.getLogger(__name__)
    os.environ.setdefault("VIPS_WARNING", "0")
    # libvips sizes its thread pools from this only once, at startup
    os.environ.setdefault("VIPS_CONCURRENCY", str(VIPS_CONCURRENCY))

    try:
        stderr_fd = sys.stderr.fileno()
    except (AttributeError, OSError, ValueError):
        # fileno() unavailable (IDLE, captured test output) - import without suppression
        try:
            import pyvips  # noqa: F401
        except (ImportError, OSError):
            _logger.debug("pyvips not available")
        return

    # os.dup2 rather than contextlib.redirect_stderr: libvips writes to the
    # C-level file descriptor, bypassing Python's sys.stderr.
    try:
        old_stderr_fd = os.dup(stderr_fd)
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            os.dup2(devnull, stderr_fd)
            import pyvips  # noqa: F401
        finally:
            os.dup2(old_stderr_fd, stderr_fd)
            os.close(old_stderr_fd)
            os.close(devnull)
    except (ImportError, OSError) as e:
        _logger.debug("pyvips import issue: %s", e)


_import_pyvips_quiet()
del _import_pyvips_quiet
