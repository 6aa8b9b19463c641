"""CLI entry point for tilesplit."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from tqdm import tqdm

from tilesplit.config import (
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PNG_PRESET,
    DEFAULT_THREADS,
    DEFAULT_TILE_FORMAT,
    DEFAULT_TILE_SIZE,
    PNG_PRESET_MAX,
    TILE_FORMATS,
)
from tilesplit.core.morton import MAX_COORD_BITS
from tilesplit.core.pyramid_spec import PyramidSpec
from tilesplit.core.types import ZoomSpan
from tilesplit.errors import TileSplitError

from .backends import is_vips_available
from .pipeline import SplitResult, split_image_file

logger = logging.getLogger(__name__)


class RangeType(click.ParamType):
    """Inclusive integer range written ``A-B``, ``"A B"`` or just ``A``."""

    name = "range"

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        text = str(value).strip()
        sep = next((c for c in text[1:] if c in "- "), None)
        parts = text.split(sep, 1) if sep else [text]
        try:
            numbers = [int(part) for part in parts]
        except ValueError:
            self.fail(f"{value!r} is not a range like 0-5", param, ctx)
        if len(numbers) == 1:
            numbers = numbers * 2
        lo, hi = numbers
        if lo < 0 or lo > hi:
            self.fail(f"{value!r} must be ascending and non-negative", param, ctx)
        return lo, hi


RANGE = RangeType()


def _setup_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _check_prerequisites() -> None:
    """Check that pyvips is available.

    Exits the process with an error message if not.
    """
    if not is_vips_available():
        click.echo(click.style(
            "Error: tilesplit requires pyvips. "
            "Install it with a bundled libvips: pip install 'pyvips[binary]'",
            fg="red"
        ), err=True)
        sys.exit(1)


def _build_spec(
    tilesize: int,
    zoomlevel: int,
    zoomrange: tuple[int, int] | None,
    targetrange: tuple[int, int] | None,
    worker_index: int | None,
    worker_count: int | None,
    parent_zoomlevel: int | None,
    index_for_zoom: int,
) -> PyramidSpec:
    """Pick the PyramidSpec factory matching the given options."""
    span = ZoomSpan(*zoomrange) if zoomrange else None
    worker_mode = worker_index is not None or worker_count is not None

    if parent_zoomlevel is not None:
        if zoomrange or targetrange or worker_mode:
            raise click.UsageError(
                "--parent-zoomlevel cannot be combined with --zoomrange, "
                "--targetrange or worker options"
            )
        return PyramidSpec.for_sub_tile(tilesize, zoomlevel, parent_zoomlevel, index_for_zoom)

    if worker_mode:
        if targetrange:
            raise click.UsageError("--targetrange cannot be combined with worker options")
        if worker_index is None or worker_count is None:
            raise click.UsageError("--worker-index and --worker-count must be given together")
        return PyramidSpec.for_worker(tilesize, zoomlevel, worker_index, worker_count, span)

    return PyramidSpec.for_range(tilesize, zoomlevel, span, targetrange)


def _print_header(
    filename: Path, output_dir: Path, spec: PyramidSpec, tileformat: str,
    preset: int | None, save_resize: bool,
) -> None:
    """Print the CLI banner with processing parameters."""
    click.echo(click.style("tilesplit", fg="cyan", bold=True))
    click.echo(click.style("=" * 40, fg="cyan"))
    click.echo(f"Input: {filename} (zoom {spec.source_zoom}, {spec.source_side}px)")
    click.echo(f"Output directory: {output_dir}")
    format_label = f"{tileformat} preset {preset}" if preset is not None else tileformat
    click.echo(f"Tile size: {spec.tile_size}px | Format: {format_label}")
    if spec.sub_tile_origin is not None:
        origin = spec.sub_tile_origin
        click.echo(f"Sub-tile ({origin.x}, {origin.y}) of zoom {origin.zoom}")
    lo, hi = spec.global_range
    click.echo(f"Zoom range: {spec.zoom_span} | Tiles {lo}-{hi} ({spec.tile_count})")
    for level_slice in spec.slices:
        click.echo(f"  zoom {level_slice.zoom}: Morton {level_slice.start}-{level_slice.end}")
    if save_resize:
        click.echo(click.style("Saving resized levels instead of tiles", fg="yellow"))
    click.echo()


def _print_summary(result: SplitResult) -> None:
    """Print the colored summary and exit with error if any failures."""
    click.echo()
    click.echo(click.style("=" * 40, fg="cyan"))

    parts = []
    if result.tiles_written > 0:
        parts.append(click.style(f"{result.tiles_written} tiles written", fg="green"))
    if result.levels_written > 0:
        parts.append(click.style(f"{result.levels_written} levels written", fg="green"))
    if result.errors:
        parts.append(click.style(f"{len(result.errors)} failed", fg="red"))

    summary = ", ".join(parts) if parts else "Nothing written"
    click.echo(click.style("Completed: ", bold=True) + summary)

    if result.errors:
        click.echo()
        click.echo(click.style("Failed:", fg="red"))
        for name, error in result.errors:
            click.echo(f"  {name}: {error}")
        sys.exit(1)


@click.command()
@click.argument("filename", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "-l",
    "--zoomlevel",
    type=click.IntRange(0, MAX_COORD_BITS),
    required=True,
    envvar="ZOOMLEVEL",
    help="Zoom level of the input image",
)
@click.option(
    "-r",
    "--zoomrange",
    type=RANGE,
    default=None,
    help="Zoom levels to slice tiles for, e.g. 0-5 (default: the input zoom level)",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False),
    default=DEFAULT_OUTPUT_DIR,
    envvar="OUTPUT_DIR",
    show_default=True,
    help="Location to write output tiles to",
)
@click.option(
    "--tilesize",
    type=click.IntRange(min=1),
    default=DEFAULT_TILE_SIZE,
    show_default=True,
    help="Dimension of output tiles, in pixels",
)
@click.option(
    "--tileformat",
    type=click.Choice(sorted(TILE_FORMATS), case_sensitive=False),
    default=DEFAULT_TILE_FORMAT,
    envvar="TILEFORMAT",
    show_default=True,
    help="Type of output tiles",
)
@click.option(
    "-t",
    "--targetrange",
    type=RANGE,
    default=None,
    help="Inclusive global Morton range of tiles to slice, e.g. 0-340",
)
@click.option(
    "--worker-index",
    type=int,
    default=None,
    envvar="WORKER_INDEX",
    help="Slice the share of this worker (1-based) out of --worker-count",
)
@click.option(
    "--worker-count",
    type=int,
    default=None,
    envvar="WORKER_COUNT",
    help="Number of workers splitting the zoom range",
)
@click.option(
    "--parent-zoomlevel",
    type=click.IntRange(0, MAX_COORD_BITS),
    default=None,
    help="Zoom level of the larger image the input is a sub-tile of",
)
@click.option(
    "--index-for-zoom",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Morton index of the input within the parent zoom level",
)
@click.option(
    "--preset",
    type=click.IntRange(0, PNG_PRESET_MAX),
    default=None,
    envvar="PRESET",
    help=f"PNG compression preset 0-{PNG_PRESET_MAX} (default: 2 for png)",
)
@click.option(
    "--save-resize",
    is_flag=True,
    envvar="SAVE_RESIZE",
    help="Save the resized level images instead of tiles",
)
@click.option(
    "--threads",
    type=click.IntRange(min=1),
    default=DEFAULT_THREADS,
    show_default=True,
    help="Worker threads for resizing and writing",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every tile written")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors")
def main(
    filename: str,
    zoomlevel: int,
    zoomrange: tuple[int, int] | None,
    output_dir: str,
    tilesize: int,
    tileformat: str,
    targetrange: tuple[int, int] | None,
    worker_index: int | None,
    worker_count: int | None,
    parent_zoomlevel: int | None,
    index_for_zoom: int,
    preset: int | None,
    save_resize: bool,
    threads: int,
    verbose: bool,
    quiet: bool,
) -> None:
    """Split a square image into a pyramid of map tiles.

    FILENAME is the input image. Its side must be TILESIZE << ZOOMLEVEL
    pixels. Tiles are written as {zoom}-{x}-{y}.{format}.

    Examples:

        # Slice zoom levels 0 to 5 of an 8192px image
        tilesplit world.png -l 5 -r 0-5

        # Only the first 341 tiles of that pyramid
        tilesplit world.png -l 5 -r 0-5 -t 0-340

        # Worker 2 of 4 in a batch job
        tilesplit world.png -l 5 -r 0-5 --worker-index 2 --worker-count 4

        # Input is sub-tile 2 of a zoom 7 image
        tilesplit part.png -l 5 --parent-zoomlevel 7 --index-for-zoom 2
    """
    _setup_logging(verbose, quiet)
    tileformat = tileformat.lower()

    if preset is not None and tileformat != "png":
        click.echo(click.style(
            f"Error: The --preset argument cannot be used with --tileformat set to '{tileformat}'",
            fg="red",
        ), err=True)
        sys.exit(2)

    try:
        spec = _build_spec(
            tilesize, zoomlevel, zoomrange, targetrange,
            worker_index, worker_count, parent_zoomlevel, index_for_zoom,
        )
    except TileSplitError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    _check_prerequisites()
    if preset is None and tileformat == "png":
        preset = DEFAULT_PNG_PRESET
    output_path = Path(output_dir)
    _print_header(Path(filename), output_path, spec, tileformat, preset, save_resize)

    total = len(spec.slices) if save_resize else spec.tile_count
    stage = "levels" if save_resize else "tiles"
    with tqdm(total=total, desc=f"Writing {stage}", disable=quiet) as pbar:

        def progress(name: str, current: int, _total: int) -> None:
            if name == stage and current > 0:
                pbar.update(1)

        try:
            result = split_image_file(
                Path(filename),
                spec,
                output_path,
                tile_format=tileformat,
                png_preset=preset,
                threads=threads,
                progress_callback=progress,
                save_resize=save_resize,
            )
        except KeyboardInterrupt:
            click.echo(click.style("\nInterrupted", fg="yellow"), err=True)
            sys.exit(130)
        except TileSplitError as e:
            click.echo(click.style(f"\nError: {e}", fg="red"), err=True)
            sys.exit(1)

    _print_summary(result)


if __name__ == "__main__":
    main()
