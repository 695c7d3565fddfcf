"""Decoding of single planes into typed pixel buffers."""

import logging
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from bioimport.models import DecodedPlane, SampleKind, SeriesDescriptor

logger = logging.getLogger(__name__)


def pad_plane(array: np.ndarray, size_x: int, size_y: int) -> np.ndarray:
    """Place ``array`` at the origin of a zero-filled ``size_y x size_x`` canvas.

    Planes that already cover the nominal size are returned unchanged.
    """
    height, width = array.shape[:2]
    if width >= size_x and height >= size_y:
        return array
    shape = (max(height, size_y), max(width, size_x)) + array.shape[2:]
    padded = np.zeros(shape, dtype=array.dtype)
    padded[:height, :width, ...] = array
    return padded


def autoscale(array: np.ndarray, minimum: float, maximum: float) -> np.ndarray:
    """Map ``[minimum, maximum]`` linearly onto 0..255 bytes. NaN samples become 0."""
    if maximum <= minimum:
        return np.zeros(array.shape, dtype=np.uint8)
    scaled = (array.astype(np.float64) - minimum) * (255.0 / (maximum - minimum))
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def finite_range(array: np.ndarray) -> Tuple[float, float]:
    """Min and max over the finite samples of ``array``, ``(0, 0)`` if there are none."""
    if array.dtype.kind == "f":
        array = array[np.isfinite(array)]
    if array.size == 0:
        return 0.0, 0.0
    return float(np.min(array)), float(np.max(array))


def to_byte(array: np.ndarray) -> np.ndarray:
    """Convert a plane to bytes, scaling its own finite min..max to 0..255."""
    if array.dtype == np.uint8:
        return array
    return autoscale(array, *finite_range(array))


def to_short(array: np.ndarray) -> np.ndarray:
    """Convert a plane to unsigned shorts, scaling its own finite min..max to 0..65535."""
    if array.dtype == np.uint16:
        return array
    lo, hi = finite_range(array)
    if hi <= lo:
        return np.zeros(array.shape, dtype=np.uint16)
    scaled = (array.astype(np.float64) - lo) * (65535.0 / (hi - lo))
    scaled = np.nan_to_num(scaled, nan=0.0, posinf=65535.0, neginf=0.0)
    return np.clip(np.rint(scaled), 0, 65535).astype(np.uint16)


def pack_rgb(red: np.ndarray, green: np.ndarray, blue: np.ndarray) -> np.ndarray:
    """Pack three byte planes into one ``0xRRGGBB`` uint32 plane."""
    return (
        (red.astype(np.uint32) << 16)
        | (green.astype(np.uint32) << 8)
        | blue.astype(np.uint32)
    )


def unpack_rgb(packed: np.ndarray) -> np.ndarray:
    """Inverse of :func:`pack_rgb`, returning ``(Y, X, 3)`` bytes."""
    packed = packed.astype(np.uint32)
    return np.stack(
        [(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF], axis=-1
    ).astype(np.uint8)


def to_generic(array: np.ndarray) -> np.ndarray:
    """Slow-path conversion of any plane into a displayable single-band plane.

    Multi-band planes become packed ``0xRRGGBB`` uint32 planes: each band is
    scaled to bytes, bands past the third are dropped (a fourth is treated as
    alpha) and missing bands are zero. Single-band planes of any other sample
    type become float32.
    """
    if array.ndim == 2:
        return array.astype(np.float32)

    bands = [to_byte(array[..., b]) for b in range(min(array.shape[2], 4))]
    if len(bands) == 4:
        image = Image.fromarray(np.ascontiguousarray(np.stack(bands, axis=-1)))
    else:
        while len(bands) < 3:
            bands.append(np.zeros_like(bands[0]))
        image = Image.fromarray(np.ascontiguousarray(np.stack(bands[:3], axis=-1)))
    rgb = np.asarray(image.convert("RGB"))
    return pack_rgb(rgb[..., 0], rgb[..., 1], rgb[..., 2])


def extract_pixels(plane: DecodedPlane) -> Tuple[SampleKind, np.ndarray]:
    """Turn a decoded plane into the 2D pixels of a stack slice.

    Single-band byte, ushort and float planes keep their samples; only the
    first ``width * height`` samples of the buffer are used. Everything else
    goes through :func:`to_generic` and lands in the generic stack.
    """
    fast_kinds = (SampleKind.BYTE, SampleKind.USHORT, SampleKind.FLOAT)
    if plane.band_count == 1 and plane.sample_kind in fast_kinds:
        area = plane.width * plane.height
        samples = plane.buffer
        if samples.size > area:
            samples = samples[:area]
        return plane.sample_kind, samples.reshape(plane.height, plane.width)
    return SampleKind.OTHER, to_generic(plane.to_array())


class PlaneDecoder:
    """Reads planes of one series from a reader chain.

    ``deferred_rgb_merge`` starts as the flag computed when the chain was
    built, and is raised here the first time an RGB plane with >= 16-bit
    samples and no known channel range is read.
    """

    def __init__(self, reader, descriptor: SeriesDescriptor, deferred_rgb_merge: bool = False):
        self.reader = reader
        self.descriptor = descriptor
        self.deferred_rgb_merge = deferred_rgb_merge

    def _channel_range(self, index: int) -> Optional[Tuple[float, float]]:
        _, c, _ = self.reader.get_zct_coords(index)
        return self.reader.channel_min_max(c)

    def decode(self, index: int) -> DecodedPlane:
        array = np.asarray(self.reader.open_plane(index))
        array = pad_plane(array, self.descriptor.size_x, self.descriptor.size_y)

        if (
            not self.deferred_rgb_merge
            and self.descriptor.is_rgb
            and self.descriptor.bits_per_sample >= 16
        ):
            channel_range = self._channel_range(index)
            if channel_range is None:
                logger.debug(f"Deferring RGB merge of series {self.descriptor.index + 1}")
                self.deferred_rgb_merge = True
            else:
                array = autoscale(array, *channel_range)

        return DecodedPlane.from_array(array)

    def read(self, index: int) -> Tuple[SampleKind, np.ndarray]:
        return extract_pixels(self.decode(index))
