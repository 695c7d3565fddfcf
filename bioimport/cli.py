"""CLI interface for bioimport."""

import logging
import re
import sys
from pathlib import Path

import click
import numpy as np
import tifffile
from loguru import logger as loguru_logger

from bioimport.collaborators import DefaultPrompter
from bioimport.exceptions import BioImportError
from bioimport.importer import Importer
from bioimport.models import ImportOptions, SampleKind
from bioimport.planes import unpack_rgb
from bioimport.prefs import JsonPreferences
from bioimport.readers import build_chain, open_reader
from bioimport.selection import parse_range, parse_series
from bioimport.series import describe_series, metadata_table

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Swapped out by tests to open files without BioIO plugins
resolve_reader = open_reader


class CliPrompter(DefaultPrompter):
    """Takes series and plane ranges from command line text.

    ``series_text`` is parsed once the series count is known. Ranges are
    handed out to the included series in order.
    """

    def __init__(self, overrides=None, series_text=None, range_texts=()):
        super().__init__(overrides=overrides)
        self.series_text = series_text
        self.range_texts = list(range_texts)

    def choose_series(self, descriptors, include):
        if not self.series_text:
            return include
        return parse_series(self.series_text, len(descriptors))

    def choose_ranges(self, descriptors, include, defaults):
        ranges = list(defaults)
        given = [parse_range(text) for text in self.range_texts]
        for descriptor, included in zip(descriptors, include):
            if included and given:
                ranges[descriptor.index] = given.pop(0)
        if given:
            logger.warning(f"Ignoring {len(given)} extra plane range(s)")
        return ranges


class ClickErrorReporter:
    def error(self, title, message):
        click.echo(f"✗ {title}: {message}", err=True)


class ClickStatus:
    def show_status(self, text):
        if text:
            logger.info(text)

    def show_progress(self, fraction):
        pass


class ClickMetadataDisplay:
    def show_metadata(self, title, table):
        click.echo(title)
        for key in sorted(table):
            click.echo(f"  {key} = {table[key]}")


class EchoDisplay:
    def show(self, product):
        stack = product.stack
        click.echo(
            f"✓ {product.title}: {stack.width} x {stack.height}, "
            f"{len(stack)} planes ({stack.kind.value})"
        )


class TiffDisplay:
    """Writes each product as an ImageJ hyperstack TIFF into ``output_dir``."""

    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)
        self.written = []

    def show(self, product):
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{safe_name(product.title)}.tif"
        data, rgb = tiff_data(product.stack)

        metadata = {"axes": "ZYXS" if rgb else "ZYX", "Labels": list(product.stack.labels)}
        kwargs = {}
        cal = product.calibration
        if cal is not None:
            metadata["unit"] = "um"
            if cal.pixel_depth is not None:
                metadata["spacing"] = cal.pixel_depth
            if cal.pixel_width is not None and cal.pixel_height is not None:
                kwargs["resolution"] = (1.0 / cal.pixel_width, 1.0 / cal.pixel_height)
        if product.stack.color_table is not None and not rgb:
            metadata["LUTs"] = [product.stack.color_table]
        if product.description:
            metadata["Info"] = product.description
        if rgb:
            kwargs["photometric"] = "rgb"

        tifffile.imwrite(str(path), data, imagej=True, metadata=metadata, **kwargs)
        self.written.append(path)
        click.echo(f"✓ {product.title} -> {path.name}")


def safe_name(title):
    return re.sub(r"[^\w.-]+", "_", title).strip("_") or "image"


def tiff_data(stack):
    """Return ``(array, is_rgb)`` in a sample type ImageJ TIFFs support."""
    data = stack.to_array()
    if stack.kind is SampleKind.RGB:
        return data, True
    if data.dtype == np.uint32:
        return np.stack([unpack_rgb(plane) for plane in data]), True
    if data.dtype not in (np.uint8, np.uint16, np.float32):
        data = data.astype(np.float32)
    return data, False


def option_overrides(**flags):
    """Keep only the flags given on the command line."""
    return {name: value for name, value in flags.items() if value is not None}


def flag(name, help):
    return click.option(f"--{name}/--no-{name}", default=None, help=help)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """bioimport - Import multi-dimensional bioimages as typed plane stacks."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.getLogger().setLevel(level)
    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@cli.command("open")
@click.argument("input", type=click.Path(path_type=Path))
@flag("merge-channels", "Merge channels into RGB planes")
@flag("ignore-color-tables", "Ignore indexed-color lookup tables")
@flag("colorize", "Give split channels red, green and blue lookup tables")
@flag("split-windows", "Open each channel as its own stack")
@flag("show-metadata", "Print the metadata table")
@flag("stitch-files", "Treat similarly named files as one dataset")
@flag("specify-ranges", "Read only the given plane ranges")
@click.option("--series", "series_text", help="Series to open, e.g. 1,3 or all")
@click.option(
    "--range",
    "range_texts",
    multiple=True,
    help="Plane range begin:end[:step] (1-based) per opened series",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(path_type=Path),
    help="Directory to save TIFF stacks",
)
@click.option(
    "--prefs",
    type=click.Path(path_type=Path),
    help="Preferences file (default: ~/.bioimport/prefs.json)",
)
@click.option("--quiet", "-q", is_flag=True, help="Do not report errors")
def open_command(
    input,
    merge_channels,
    ignore_color_tables,
    colorize,
    split_windows,
    show_metadata,
    stitch_files,
    specify_ranges,
    series_text,
    range_texts,
    output_dir,
    prefs,
    quiet,
):
    """
    Import a bioimage file.

    Options not given on the command line fall back to the saved
    preferences, which are updated after every successful import.
    """
    overrides = option_overrides(
        merge_channels=merge_channels,
        ignore_color_tables=ignore_color_tables,
        colorize=colorize,
        split_windows=split_windows,
        show_metadata=show_metadata,
        stitch_files=stitch_files,
        specify_ranges=specify_ranges,
    )
    if range_texts and "specify_ranges" not in overrides:
        overrides["specify_ranges"] = True

    importer = Importer(
        prompter=CliPrompter(overrides, series_text, range_texts),
        display=TiffDisplay(output_dir) if output_dir else EchoDisplay(),
        metadata_display=ClickMetadataDisplay(),
        preferences=JsonPreferences(prefs),
        status=ClickStatus(),
        errors=ClickErrorReporter(),
        resolver=resolve_reader,
    )
    result = importer.run(str(input), quiet=quiet)
    if not result.success:
        sys.exit(1)
    click.echo(f"\nCompleted: {len(result.products)} image(s)")


@cli.command()
@click.argument("input", type=click.Path(path_type=Path))
@click.option("--metadata/--no-metadata", default=True, help="Print the metadata table")
@click.option(
    "--prefs",
    type=click.Path(path_type=Path),
    help="Preferences file (default: ~/.bioimport/prefs.json)",
)
def info(input, metadata, prefs):
    """
    Show the series of a bioimage file.

    Series are described as they would be opened with the saved options.
    """
    options = ImportOptions.from_preferences(JsonPreferences(prefs))
    try:
        chain = resolve_reader(str(input))
    except BioImportError as e:
        click.echo(f"✗ {e.user_message()}", err=True)
        sys.exit(1)

    try:
        chain = build_chain(chain, options)
        for descriptor in describe_series(chain):
            click.echo(descriptor.summary)
        if metadata:
            click.echo("")
            table = metadata_table(chain)
            for key in sorted(table):
                click.echo(f"  {key} = {table[key]}")
    except BioImportError as e:
        click.echo(f"✗ {e.user_message()}", err=True)
        sys.exit(1)
    finally:
        chain.close()


if __name__ == "__main__":
    cli()
