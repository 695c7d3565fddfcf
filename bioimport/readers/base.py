# -*- coding: utf-8 -*-
"""Plane-indexed readers over bioimage files.

A reader exposes one series at a time (``set_series``) and serves its planes by
linear index, so that wrappers can re-address planes without knowing the file
format. :class:`BioioReader` is the base reader backed by BioIO; every other
reader in this package wraps another reader.
"""

import math
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np
from bioio import BioImage
from loguru import logger

from bioimport.exceptions import MissingSource, UnsupportedFormat
from bioimport.readers import dims
from bioimport.utils import silence_bioformats_logging

PIXEL_TYPE_NAMES = {
    np.dtype("uint8"): "uint8",
    np.dtype("uint16"): "uint16",
    np.dtype("uint32"): "uint32",
    np.dtype("int8"): "int8",
    np.dtype("int16"): "int16",
    np.dtype("int32"): "int32",
    np.dtype("float32"): "float",
    np.dtype("float64"): "double",
}


class Reader:
    """Common behavior of all readers.

    Subclasses provide the per-series dimension properties and
    :meth:`open_plane`; plane addressing is derived here from
    ``dimension_order`` and the sizes.
    """

    path = None  # type: str

    def __init__(self):
        self._closed = False
        self._ignore_color_table = False

    @property
    def ignore_color_table(self):
        # type: () -> bool
        """Whether indexed-color lookup tables are dropped by the reader."""
        return self._ignore_color_table

    @ignore_color_table.setter
    def ignore_color_table(self, value):
        # type: (bool) -> None
        self._ignore_color_table = bool(value)

    # ------------------------------------------------------------------
    # Derived dimension helpers
    # ------------------------------------------------------------------
    @property
    def effective_size_c(self):
        # type: () -> int
        """Number of channel planes per (Z, T) position."""
        return self.size_c // self.rgb_channel_count

    @property
    def bits_per_sample(self):
        # type: () -> int
        return self.dtype.itemsize * 8

    @property
    def pixel_type(self):
        # type: () -> str
        return PIXEL_TYPE_NAMES.get(self.dtype, str(self.dtype))

    @property
    def is_little_endian(self):
        # type: () -> bool
        byteorder = self.dtype.byteorder
        return byteorder in ("<", "|") or (byteorder == "=" and np.little_endian)

    def get_index(self, z, c, t):
        # type: (int, int, int) -> int
        return dims.get_index(
            self.dimension_order, self.size_z, self.effective_size_c, self.size_t, z, c, t
        )

    def get_zct_coords(self, index):
        # type: (int) -> Tuple[int, int, int]
        return dims.get_zct_coords(
            self.dimension_order, self.size_z, self.effective_size_c, self.size_t, index
        )

    @property
    def base(self):
        # type: () -> Reader
        """The innermost reader."""
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def closed(self):
        # type: () -> bool
        return self._closed

    def close(self):
        # type: () -> None
        if self._closed:
            return
        self._closed = True
        self._close()

    def _close(self):
        # type: () -> None
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class BioioReader(Reader):
    """Base reader backed by :class:`bioio.BioImage`.

    Scenes are exposed as series. Planes are addressed in ``XYCZT`` order;
    for RGB images the samples dimension ``S`` is folded into the channel
    count, so ``size_c == C * S`` and each plane carries ``S`` bands.
    """

    dimension_order = "XYCZT"
    is_order_certain = True

    def __init__(self, path, reader=None):
        # type: (str, Optional[type]) -> None
        super().__init__()
        self.path = str(path)
        self._plugin = reader
        try:
            self._image = BioImage(self.path, reader=reader)
        except Exception as e:
            raise UnsupportedFormat(str(e) or None) from e

        name = Path(self.path).name
        logger.debug(f"{name} - using {self._reader_name()} reader")
        logger.debug(f"{name} - {self.series_count} series")
        self._read_dims()

    def _reader_name(self):
        # type: () -> str
        plugin = getattr(self._image, "_plugin", None)
        if plugin is not None:
            return plugin.entrypoint.name
        return type(self._image.reader).__name__

    def _read_dims(self):
        # type: () -> None
        shape = self._image.dims.shape
        order = self._image.dims.order
        sizes = dict(zip(order, shape))
        self._sizes = {axis: sizes.get(axis, 1) for axis in "TCZYXS"}
        self._dtype = np.dtype(self._image.dtype)
        logger.debug(
            f"{Path(self.path).name} - series {self.series}: "
            f"T={self._sizes['T']}, C={self._sizes['C']}, Z={self._sizes['Z']}, "
            f"Y={self._sizes['Y']}, X={self._sizes['X']}, S={self._sizes['S']}"
        )

    # ------------------------------------------------------------------
    # Series selection
    # ------------------------------------------------------------------
    @property
    def series_count(self):
        # type: () -> int
        return len(self._image.scenes)

    @property
    def series(self):
        # type: () -> int
        return self._image.current_scene_index

    def set_series(self, index):
        # type: (int) -> None
        if index == self.series:
            return
        self._image.set_scene(index)
        self._read_dims()

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------
    @property
    def size_x(self):
        return self._sizes["X"]

    @property
    def size_y(self):
        return self._sizes["Y"]

    @property
    def size_z(self):
        return self._sizes["Z"]

    @property
    def size_c(self):
        return self._sizes["C"] * self._sizes["S"]

    @property
    def size_t(self):
        return self._sizes["T"]

    @property
    def rgb_channel_count(self):
        return self._sizes["S"]

    @property
    def is_rgb(self):
        return self._sizes["S"] > 1

    @property
    def is_interleaved(self):
        return self.is_rgb

    @property
    def image_count(self):
        return self._sizes["Z"] * self._sizes["C"] * self._sizes["T"]

    @property
    def dtype(self):
        return self._dtype

    @property
    def image_name(self):
        # type: () -> Optional[str]
        return self._image.current_scene

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    @property
    def physical_pixel_sizes(self):
        # type: () -> Tuple[Optional[float], Optional[float], Optional[float]]
        """Physical pixel size as ``(x, y, z)``; missing values are ``None``."""
        pps = self._image.physical_pixel_sizes
        return _finite(pps.X), _finite(pps.Y), _finite(pps.Z)

    def channel_min_max(self, channel):
        # type: (int) -> Optional[Tuple[float, float]]
        """Global min/max of a channel, when the format records it.

        BioIO does not expose per-channel extrema, so this is always unknown.
        """
        return None

    @property
    def metadata(self):
        # type: () -> Dict[str, Any]
        """Reader-native metadata flattened to scalar key/value pairs."""
        native = {}
        try:
            standard = self._image.standard_metadata
        except Exception as e:
            logger.debug(f"Failed to get standard_metadata: {e}")
            standard = None
        if standard is not None:
            native.update(flatten_fields(standard))

        raw = self._image.metadata
        if isinstance(raw, dict):
            native.update(flatten_fields(raw))
        return native

    @property
    def description(self):
        # type: () -> Optional[str]
        """OME-XML of the source, if the reader can produce it."""
        try:
            return self._image.ome_metadata.to_xml()
        except Exception as e:
            logger.debug(f"No OME metadata for {Path(self.path).name}: {e}")
            return None

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------
    def open_plane(self, index):
        # type: (int) -> np.ndarray
        """Read one plane as ``(Y, X)``, or ``(Y, X, S)`` for RGB images."""
        z, c, t = self.get_zct_coords(index)
        kwargs = {}
        order = self._image.dims.order
        if "Z" in order:
            kwargs["Z"] = z
        if "C" in order:
            kwargs["C"] = c
        if "T" in order:
            kwargs["T"] = t
        if self.is_rgb:
            return self._image.get_image_data("YXS", **kwargs)
        return self._image.get_image_data("YX", **kwargs)

    def reopen(self, path):
        # type: (str) -> BioioReader
        """Open another file with the same reader plugin."""
        return BioioReader(path, reader=self._plugin)

    def _close(self):
        # type: () -> None
        close = getattr(self._image, "close", None)
        if close is not None:
            close()
        logger.debug(f"{Path(self.path).name} - closed")


def _finite(value):
    # type: (Optional[float]) -> Optional[float]
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value


def flatten_fields(obj, prefix="", max_depth=5, current_depth=0):
    # type: (Any, str, int, int) -> Dict[str, Any]
    """Recursively collect scalar fields of a metadata object.

    :param obj: Dataclass-like object, dict, list or tuple
    :param prefix: Prefix for nested field names
    :return: Mapping of dotted field names to scalar values
    """
    found = {}
    if obj is None or current_depth >= max_depth:
        return found

    if isinstance(obj, (list, tuple)):
        for idx, item in enumerate(obj):
            name = f"{prefix}[{idx}]"
            if _is_scalar(item):
                found[name] = item
            else:
                found.update(flatten_fields(item, name, max_depth, current_depth + 1))
        return found

    if isinstance(obj, dict):
        items = obj.items()
    elif hasattr(obj, "__dict__"):
        items = ((k, v) for k, v in vars(obj).items() if not k.startswith("_"))
    else:
        return found

    for key, value in items:
        name = f"{prefix}.{key}" if prefix else str(key)
        if value is None:
            continue
        if _is_scalar(value):
            found[name] = value
        elif isinstance(value, (dict, list, tuple)) or hasattr(value, "__dict__"):
            found.update(flatten_fields(value, name, max_depth, current_depth + 1))
    return found


def _is_scalar(value):
    # type: (Any) -> bool
    return isinstance(value, (str, int, float, bool))


def open_reader(path, reader=None):
    # type: (str, Optional[type]) -> BioioReader
    """Resolve a reader for ``path``.

    :raises MissingSource: If ``path`` does not exist
    :raises UnsupportedFormat: If no BioIO plugin can read the file
    """
    if path is None or not Path(path).exists():
        raise MissingSource(None if path is None else str(path))
    silence_bioformats_logging()
    return BioioReader(path, reader=reader)
