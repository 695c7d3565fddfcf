# -*- coding: utf-8 -*-
"""Assembly of the reader chain for one import call."""

from typing import Set, Tuple

from loguru import logger

from bioimport.exceptions import BioImportError, DecodeFailure
from bioimport.models import ImportOptions
from bioimport.readers.base import Reader
from bioimport.readers.stitcher import FileStitcher
from bioimport.readers.wrappers import ChannelMerger, ChannelSeparator


def build_chain(reader, options):
    # type: (Reader, ImportOptions) -> Reader
    """Wrap ``reader`` according to the import flags.

    The innermost wrapper merges or separates channels; file stitching goes
    on top of it. The ignore-color-table flag is forwarded to the base reader.

    :raises DecodeFailure: If any wrapper cannot be constructed
    """
    try:
        if options.merge_channels:
            chain = ChannelMerger(reader)
        else:
            chain = ChannelSeparator(reader)
        if options.stitch_files:
            chain = FileStitcher(chain)
        chain.ignore_color_table = options.ignore_color_tables
    except BioImportError:
        raise
    except Exception as e:
        raise DecodeFailure(str(e) or None) from e

    logger.debug(f"Reader chain: {chain!r}")
    return chain


def needs_deferred_rgb(reader):
    # type: (Reader) -> bool
    """True when the current series is RGB with >= 16-bit samples of unknown range.

    The series counts as RGB when either the chain presents it as RGB (merged
    channels) or the source stores it as RGB. Such planes cannot be shown as
    color directly; their channels are read separately and merged after
    assembly.
    """
    if not (reader.is_rgb or reader.base.is_rgb) or reader.bits_per_sample < 16:
        return False
    return any(reader.channel_min_max(c) is None for c in range(reader.size_c))


def apply_deferred_rgb(chain, options):
    # type: (Reader, ImportOptions) -> Tuple[Reader, Set[int]]
    """Add a channel separation layer for series needing a deferred RGB merge.

    :return: The (possibly wrapped) chain and the flagged series indices
    """
    if options.ignore_color_tables:
        return chain, set()

    current = chain.series
    flagged = set()
    for index in range(chain.series_count):
        chain.set_series(index)
        if needs_deferred_rgb(chain):
            flagged.add(index)
    chain.set_series(current)

    if not flagged:
        return chain, flagged

    logger.debug(f"Deferring RGB merge for series {sorted(flagged)}")
    try:
        chain = ChannelSeparator(chain)
    except Exception as e:
        raise DecodeFailure(str(e) or None) from e
    return chain, flagged
