"""Data structures shared by the import pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional

import numpy as np

if TYPE_CHECKING:
    from bioimport.stacks import TypedStack


class SampleKind(Enum):
    """Numeric representation of one pixel sample."""

    BYTE = "byte"
    USHORT = "ushort"
    FLOAT = "float"
    OTHER = "other"
    # Only produced by RGB reconstruction, never by the plane decoder
    RGB = "rgb"

    @classmethod
    def from_dtype(cls, dtype) -> "SampleKind":
        dtype = np.dtype(dtype)
        if dtype == np.uint8:
            return cls.BYTE
        if dtype == np.uint16:
            return cls.USHORT
        if dtype == np.float32:
            return cls.FLOAT
        return cls.OTHER


@dataclass(frozen=True)
class ImportOptions:
    """The seven import flags.

    Field names map to preference keys through :data:`PREFERENCE_KEYS`.
    """

    merge_channels: bool = False
    ignore_color_tables: bool = False
    colorize: bool = False
    split_windows: bool = True
    show_metadata: bool = False
    stitch_files: bool = False
    specify_ranges: bool = False

    def to_preferences(self) -> Dict[str, bool]:
        return {PREFERENCE_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_preferences(cls, prefs) -> "ImportOptions":
        """Build options from a ``Preferences``-like object, field by field."""
        values = {}
        for f in fields(cls):
            values[f.name] = bool(prefs.get(PREFERENCE_KEYS[f.name], f.default))
        return cls(**values)


PREFERENCE_KEYS = {
    "merge_channels": "mergeChannels",
    "ignore_color_tables": "ignoreColorTables",
    "colorize": "colorize",
    "split_windows": "splitWindows",
    "show_metadata": "showMetadata",
    "stitch_files": "stitchFiles",
    "specify_ranges": "specifyRanges",
}


@dataclass(frozen=True)
class SeriesDescriptor:
    """Dimensional description of one series.

    ``is_rgb`` and ``bits_per_sample`` describe the source itself, before any
    channel merging or separation.
    """

    index: int
    size_x: int
    size_y: int
    size_z: int
    size_c: int
    size_t: int
    plane_count: int
    order_certain: bool
    name: Optional[str] = None
    is_rgb: bool = False
    bits_per_sample: int = 8
    summary: str = ""


@dataclass(frozen=True)
class PlaneSelection:
    """0-based inclusive plane range of one series."""

    series_index: int
    begin: int
    end: int
    step: int = 1

    def __post_init__(self) -> None:
        if self.begin < 0 or self.end < self.begin or self.step < 1:
            raise ValueError(
                f"Invalid plane selection begin={self.begin}, end={self.end}, step={self.step}"
            )

    @property
    def count(self) -> int:
        return (self.end - self.begin) // self.step + 1

    def indices(self) -> range:
        return range(self.begin, self.end + 1, self.step)


@dataclass
class DecodedPlane:
    """One decoded plane, band-interleaved in a flat ``buffer``.

    The buffer may hold more samples than ``width * height * band_count``;
    consumers only look at the leading samples.
    """

    width: int
    height: int
    band_count: int
    sample_kind: SampleKind
    buffer: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray) -> "DecodedPlane":
        array = np.asarray(array)
        if array.ndim not in (2, 3):
            raise ValueError(f"Expected 2D or 3D plane, got {array.ndim}D")
        height, width = array.shape[:2]
        band_count = array.shape[2] if array.ndim == 3 else 1
        return cls(
            width=width,
            height=height,
            band_count=band_count,
            sample_kind=SampleKind.from_dtype(array.dtype),
            buffer=np.ascontiguousarray(array).reshape(-1),
        )

    def to_array(self) -> np.ndarray:
        size = self.width * self.height * self.band_count
        data = self.buffer[:size]
        if self.band_count == 1:
            return data.reshape(self.height, self.width)
        return data.reshape(self.height, self.width, self.band_count)


@dataclass(frozen=True)
class Calibration:
    """Physical pixel size. ``None`` marks an unset dimension."""

    pixel_width: Optional[float] = None
    pixel_height: Optional[float] = None
    pixel_depth: Optional[float] = None
    unit: str = "micron"


@dataclass
class ImageProduct:
    """A finished stack handed to the display."""

    title: str
    stack: "TypedStack"
    calibration: Optional[Calibration] = None
    description: Optional[str] = None
    series_index: int = 0
    channel_index: Optional[int] = None


@dataclass
class ImportResult:
    """Outcome of one import call."""

    success: bool = False
    canceled: bool = False
    products: List[ImageProduct] = field(default_factory=list)
    error: Optional[Exception] = None
