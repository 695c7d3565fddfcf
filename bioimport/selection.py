"""Normalization of series and plane-range choices."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from bioimport.models import PlaneSelection, SeriesDescriptor

logger = logging.getLogger(__name__)

RawRange = Tuple[int, int, int]


def clamp_range(begin: int, end: int, step: int, plane_count: int) -> Tuple[int, int, int]:
    """Convert a 1-based ``(begin, end, step)`` triple to a valid 0-based range.

    Args:
        begin: First plane, 1-based
        end: Last plane, 1-based and inclusive
        step: Plane increment
        plane_count: Number of planes in the series

    Returns:
        ``(begin, end, step)`` with ``0 <= begin <= end <= plane_count - 1``
        and ``step >= 1``
    """
    last = plane_count - 1
    b = min(max(int(begin) - 1, 0), last)
    e = min(max(int(end) - 1, b), last)
    s = max(int(step), 1)
    return b, e, s


def default_selection(descriptor: SeriesDescriptor) -> PlaneSelection:
    return PlaneSelection(descriptor.index, 0, descriptor.plane_count - 1, 1)


def default_inclusion(series_count: int) -> List[bool]:
    """Only the first series is opened unless told otherwise."""
    return [i == 0 for i in range(series_count)]


def needs_range(descriptors: Sequence[SeriesDescriptor], include: Sequence[bool]) -> bool:
    return any(inc and d.plane_count > 1 for d, inc in zip(descriptors, include))


def resolve_selections(
    descriptors: Sequence[SeriesDescriptor],
    include: Sequence[bool],
    ranges: Optional[Sequence[Optional[RawRange]]] = None,
) -> List[PlaneSelection]:
    """Build the plane selection of every included series.

    Args:
        descriptors: One descriptor per series
        include: Per-series inclusion flags
        ranges: Optional per-series raw 1-based ``(begin, end, step)``; ``None``
            entries (or a missing list) select all planes

    Returns:
        Selections for the included series, in series order
    """
    if len(include) != len(descriptors):
        raise ValueError(
            f"Got {len(include)} inclusion flags for {len(descriptors)} series"
        )
    selections = []
    for descriptor, included in zip(descriptors, include):
        if not included:
            continue
        raw = ranges[descriptor.index] if ranges is not None else None
        if raw is None or descriptor.plane_count <= 1:
            selections.append(default_selection(descriptor))
            continue
        begin, end, step = clamp_range(*raw, plane_count=descriptor.plane_count)
        selection = PlaneSelection(descriptor.index, begin, end, step)
        logger.debug(
            f"Series {descriptor.index + 1}: planes {begin + 1}-{end + 1} step {step}"
        )
        selections.append(selection)
    return selections


def parse_range(text: str) -> RawRange:
    """Parse ``"begin:end[:step]"`` into a raw 1-based triple."""
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(p.strip() for p in parts):
        raise ValueError(f"Invalid range '{text}', expected begin:end[:step]")
    numbers = [int(p) for p in parts]
    if len(numbers) == 2:
        numbers.append(1)
    return numbers[0], numbers[1], numbers[2]


def parse_series(text: str, series_count: int) -> List[bool]:
    """Parse a 1-based series list such as ``"1,3"`` or ``"all"``."""
    if text.strip().lower() == "all":
        return [True] * series_count
    include = [False] * series_count
    for item in _split_items(text):
        index = int(item) - 1
        if index < 0 or index >= series_count:
            raise ValueError(f"Series {item} out of range 1-{series_count}")
        include[index] = True
    return include


def _split_items(text: str) -> Iterable[str]:
    return (item.strip() for item in text.split(",") if item.strip())
