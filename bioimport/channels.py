"""Splitting of assembled stacks into per-channel sub-stacks."""

import logging
from typing import List, Optional

import numpy as np

from bioimport.stacks import TypedStack

logger = logging.getLogger(__name__)


def channel_color_table(channel: int) -> Optional[np.ndarray]:
    """Pure red, green or blue ramp for channels 0, 1 and 2.

    Returns:
        ``(3, 256)`` uint8 table, or ``None`` for channels past the third
    """
    if channel < 0 or channel > 2:
        return None
    table = np.zeros((3, 256), dtype=np.uint8)
    table[channel] = np.arange(256, dtype=np.uint8)
    return table


def _empty_like(stack: TypedStack, count: int) -> List[TypedStack]:
    return [TypedStack(stack.kind, stack.width, stack.height) for _ in range(count)]


def split_regular(stack: TypedStack, reader) -> List[TypedStack]:
    """Split a full-series stack using the reader's plane addressing.

    Sub-stack ``i`` holds the planes of channel ``i`` for every ``(z, t)``,
    z outermost.
    """
    sub_stacks = _empty_like(stack, reader.size_c)
    for i, sub in enumerate(sub_stacks):
        for z in range(reader.size_z):
            for t in range(reader.size_t):
                s = reader.get_index(z, i, t) + 1
                sub.add_slice(stack.slice_label(s), stack.processor(s))
    return sub_stacks


def range_step(reader) -> int:
    """Channel spacing used when splitting a range-selected stack.

    This is the distance between the first two channel planes in the
    reader's dimension order, which is only the channel count for
    orders where channels vary slowest.
    """
    if reader.size_c > 1:
        return reader.get_index(0, 1, 0) - reader.get_index(0, 0, 0)
    return reader.size_c


def split_range(
    stack: TypedStack, begin: int, end: int, step: int, channel_count: int
) -> List[TypedStack]:
    """Split a stack built from a plane range.

    Args:
        stack: Stack assembled from the selected planes
        begin: First selected plane, 0-based
        end: Last selected plane, 0-based inclusive
        step: Channel spacing, see :func:`range_step`
        channel_count: Channel count of the whole series

    Returns:
        One sub-stack per channel; candidates past the end of ``stack`` are skipped
    """
    size = len(stack)
    sub_stacks = _empty_like(stack, channel_count)
    if size == 0:
        return sub_stacks
    stride = max((end - begin + 1) // size, 1)
    for i, sub in enumerate(sub_stacks):
        for j in range(begin, end + 1, stride):
            s = i * step + (j - begin) * channel_count + 1
            if s - 1 < size:
                sub.add_slice(stack.slice_label(s), stack.processor(s))
    return sub_stacks


def split_stack(
    stack: TypedStack,
    reader,
    selection=None,
    colorize: bool = False,
) -> List[TypedStack]:
    """Split ``stack`` by channel.

    Range mode is used when ``selection`` is given, regular mode otherwise.
    With ``colorize``, the first three sub-stacks get red, green and blue
    color tables.
    """
    if selection is not None:
        sub_stacks = split_range(
            stack, selection.begin, selection.end, range_step(reader), reader.size_c
        )
    else:
        sub_stacks = split_regular(stack, reader)
    logger.debug(
        f"Split {len(stack)} planes into {len(sub_stacks)} channel stacks "
        f"({'range' if selection is not None else 'regular'} mode)"
    )
    if colorize:
        for i, sub in enumerate(sub_stacks):
            sub.color_table = channel_color_table(i)
    return sub_stacks
