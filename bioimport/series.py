"""Per-series dimensional descriptors and the metadata table."""

import logging
from dataclasses import replace
from typing import Any, Dict, List

from bioimport.models import SeriesDescriptor

logger = logging.getLogger(__name__)


def summarize(descriptor: SeriesDescriptor) -> str:
    """Build the one-line description shown when choosing series.

    Example: ``Series_1 - cells: 512 x 512; 30 planes (3C x 10Z)``.
    """
    text = f"Series_{descriptor.index + 1} - "
    if descriptor.name:
        text += f"{descriptor.name}: "
    text += f"{descriptor.size_x} x {descriptor.size_y}; {descriptor.plane_count} planes"
    if descriptor.order_certain:
        parts = []
        for size, letter in (
            (descriptor.size_c, "C"),
            (descriptor.size_z, "Z"),
            (descriptor.size_t, "T"),
        ):
            if size > 1:
                parts.append(f"{size}{letter}")
        if parts:
            text += f" ({' x '.join(parts)})"
    return text


def describe_series(reader) -> List[SeriesDescriptor]:
    """Compute one descriptor per series of ``reader``.

    The reader is left on the series it was on before the call.
    """
    current = reader.series
    descriptors = []
    for index in range(reader.series_count):
        reader.set_series(index)
        source = reader.base
        descriptor = SeriesDescriptor(
            index=index,
            size_x=reader.size_x,
            size_y=reader.size_y,
            size_z=reader.size_z,
            size_c=reader.size_c,
            size_t=reader.size_t,
            plane_count=reader.image_count,
            order_certain=reader.is_order_certain,
            name=reader.image_name,
            is_rgb=reader.is_rgb or source.is_rgb,
            bits_per_sample=source.bits_per_sample,
        )
        descriptor = replace(descriptor, summary=summarize(descriptor))
        descriptors.append(descriptor)
        logger.debug(descriptor.summary)
    reader.set_series(current)
    return descriptors


def metadata_table(reader) -> Dict[str, Any]:
    """Standard dimensional fields of the current series plus native entries."""
    table = dict(reader.metadata)
    table.update(
        {
            "SizeX": reader.size_x,
            "SizeY": reader.size_y,
            "SizeZ": reader.size_z,
            "SizeT": reader.size_t,
            "SizeC": reader.size_c,
            "IsRGB": reader.is_rgb,
            "PixelType": reader.pixel_type,
            "LittleEndian": reader.is_little_endian,
            "DimensionOrder": reader.dimension_order,
            "IsInterleaved": reader.is_interleaved,
        }
    )
    return table
