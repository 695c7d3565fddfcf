# -*- coding: utf-8 -*-
"""Reader wrappers that re-address channels.

Each wrapper holds an inner reader and forwards everything it does not change.
"""

import numpy as np
from loguru import logger

from bioimport.readers import dims
from bioimport.readers.base import Reader


class ReaderWrapper(Reader):
    """Forwards the reader interface to ``inner``."""

    def __init__(self, inner):
        # type: (Reader) -> None
        super().__init__()
        self.inner = inner

    @property
    def path(self):
        return self.inner.path

    @property
    def base(self):
        return self.inner.base

    @property
    def ignore_color_table(self):
        return self.inner.ignore_color_table

    @ignore_color_table.setter
    def ignore_color_table(self, value):
        self.inner.ignore_color_table = value

    @property
    def series_count(self):
        return self.inner.series_count

    @property
    def series(self):
        return self.inner.series

    def set_series(self, index):
        self.inner.set_series(index)

    @property
    def size_x(self):
        return self.inner.size_x

    @property
    def size_y(self):
        return self.inner.size_y

    @property
    def size_z(self):
        return self.inner.size_z

    @property
    def size_c(self):
        return self.inner.size_c

    @property
    def size_t(self):
        return self.inner.size_t

    @property
    def rgb_channel_count(self):
        return self.inner.rgb_channel_count

    @property
    def is_rgb(self):
        return self.inner.is_rgb

    @property
    def is_interleaved(self):
        return self.inner.is_interleaved

    @property
    def image_count(self):
        return self.inner.image_count

    @property
    def dimension_order(self):
        return self.inner.dimension_order

    @property
    def is_order_certain(self):
        return self.inner.is_order_certain

    @property
    def dtype(self):
        return self.inner.dtype

    @property
    def image_name(self):
        return self.inner.image_name

    @property
    def physical_pixel_sizes(self):
        return self.inner.physical_pixel_sizes

    def channel_min_max(self, channel):
        return self.inner.channel_min_max(channel)

    @property
    def metadata(self):
        return self.inner.metadata

    @property
    def description(self):
        return self.inner.description

    def open_plane(self, index):
        return self.inner.open_plane(index)

    def reopen(self, path):
        """Open ``path`` through an identical wrapper chain."""
        return type(self)(self.inner.reopen(path))

    def _close(self):
        self.inner.close()

    def __repr__(self):
        return f"{type(self).__name__}({self.inner!r})"


class ChannelSeparator(ReaderWrapper):
    """Splits RGB planes into one single-band plane per sample.

    Plane ``n`` of a separated RGB source is band ``c % S`` of the source plane
    holding channel group ``c // S``. Non-RGB sources pass through untouched.
    """

    @property
    def _separating(self):
        return self.inner.is_rgb

    @property
    def rgb_channel_count(self):
        return 1 if self._separating else self.inner.rgb_channel_count

    @property
    def is_rgb(self):
        return False if self._separating else self.inner.is_rgb

    @property
    def is_interleaved(self):
        return False if self._separating else self.inner.is_interleaved

    @property
    def image_count(self):
        if self._separating:
            return self.inner.image_count * self.inner.rgb_channel_count
        return self.inner.image_count

    @property
    def dimension_order(self):
        if self._separating:
            return dims.channels_first(self.inner.dimension_order)
        return self.inner.dimension_order

    def open_plane(self, index):
        if not self._separating:
            return self.inner.open_plane(index)
        samples = self.inner.rgb_channel_count
        z, c, t = self.get_zct_coords(index)
        source = self.inner.get_index(z, c // samples, t)
        plane = self.inner.open_plane(source)
        if plane.ndim == 2:
            # Reader already returned a single band
            return plane
        return np.ascontiguousarray(plane[..., c % samples])


class ChannelMerger(ReaderWrapper):
    """Stacks the channels of each (Z, T) position into one RGB-like plane.

    Only sources that are not already RGB and have two to four channels are
    merged; anything else passes through untouched.
    """

    @property
    def _merging(self):
        return not self.inner.is_rgb and 1 < self.inner.size_c <= 4

    @property
    def rgb_channel_count(self):
        return self.inner.size_c if self._merging else self.inner.rgb_channel_count

    @property
    def is_rgb(self):
        return True if self._merging else self.inner.is_rgb

    @property
    def is_interleaved(self):
        return True if self._merging else self.inner.is_interleaved

    @property
    def image_count(self):
        if self._merging:
            return self.inner.image_count // self.inner.size_c
        return self.inner.image_count

    @property
    def dimension_order(self):
        if self._merging:
            return dims.channels_first(self.inner.dimension_order)
        return self.inner.dimension_order

    def open_plane(self, index):
        if not self._merging:
            return self.inner.open_plane(index)
        z, _, t = self.get_zct_coords(index)
        bands = [
            self.inner.open_plane(self.inner.get_index(z, c, t))
            for c in range(self.inner.size_c)
        ]
        logger.trace(f"Merged {len(bands)} channels at z={z}, t={t}")
        return np.stack(bands, axis=-1)
