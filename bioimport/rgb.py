"""Reconstruction of true-color planes from separated channel planes."""

import logging
from typing import List, Sequence

import numpy as np

from bioimport.models import SampleKind
from bioimport.planes import to_byte, unpack_rgb
from bioimport.stacks import TypedStack

logger = logging.getLogger(__name__)


def _as_byte(stack: TypedStack, plane: np.ndarray) -> np.ndarray:
    if stack.kind is SampleKind.OTHER and plane.dtype == np.uint32:
        # packed 0xRRGGBB, reduce to luminance
        rgb = unpack_rgb(plane).astype(np.float64)
        luma = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114
        return np.clip(np.rint(luma), 0, 255).astype(np.uint8)
    return to_byte(plane)


def interleave(red: np.ndarray, green=None, blue=None) -> np.ndarray:
    """Stack up to three byte planes into one ``(Y, X, 3)`` color plane."""
    zeros = np.zeros_like(red)
    return np.stack(
        [red, zeros if green is None else green, zeros if blue is None else blue],
        axis=-1,
    )


def merge_rgb(stack: TypedStack, channel_count: int) -> TypedStack:
    """Merge consecutive groups of ``channel_count`` planes into color planes.

    Group offsets 0, 1 and 2 become red, green and blue; further offsets are
    ignored and missing ones stay zero. Each color plane takes the label of the
    first plane of its group.
    """
    channel_count = max(channel_count, 1)
    merged = TypedStack(SampleKind.RGB, stack.width, stack.height)
    for k in range(0, len(stack), channel_count):
        group = [
            _as_byte(stack, stack[k + j])
            for j in range(min(channel_count, 3))
            if k + j < len(stack)
        ]
        merged.add_slice(stack.labels[k], interleave(*group))
    logger.debug(f"Merged {len(stack)} planes into {len(merged)} color planes")
    return merged


def merge_channel_stacks(stacks: Sequence[TypedStack]) -> TypedStack:
    """Merge per-channel sub-stacks plane by plane into one color stack.

    Sub-stacks 0, 1 and 2 supply red, green and blue. Labels come from the
    first sub-stack.
    """
    if not stacks:
        raise ValueError("No channel stacks to merge")
    first = stacks[0]
    merged = TypedStack(SampleKind.RGB, first.width, first.height)
    sources: List[TypedStack] = list(stacks[:3])
    for n in range(len(first)):
        group = [_as_byte(s, s[n]) if n < len(s) else None for s in sources]
        merged.add_slice(first.labels[n], interleave(*group))
    return merged
