"""Shared fixtures: an in-memory reader over numpy arrays."""

import numpy as np
import pytest

from bioimport.readers.base import Reader


class FakeReader(Reader):
    """Reader over arrays shaped ``(T, C, Z, Y, X)`` or ``(T, C, Z, Y, X, S)``.

    One array per series. ``registry`` maps sibling paths to their series
    arrays for :meth:`reopen`. ``fail_on`` is a ``(series, plane)`` pair whose
    read raises ``RuntimeError("boom")``.
    """

    is_order_certain = True

    def __init__(
        self,
        series,
        path="fake.tif",
        names=None,
        physical_sizes=(None, None, None),
        min_max=None,
        order="XYCZT",
        registry=None,
        fail_on=None,
        description="<OME/>",
    ):
        super().__init__()
        self.data = [np.asarray(s) for s in series]
        self.path = path
        self.names = names or [None] * len(self.data)
        self.sizes = physical_sizes
        self.min_max = min_max
        self.dimension_order = order
        self.registry = registry or {}
        self.fail_on = fail_on
        self._description = description
        self.current = 0
        self.close_calls = 0
        self.opened = []

    @property
    def _array(self):
        return self.data[self.current]

    @property
    def series_count(self):
        return len(self.data)

    @property
    def series(self):
        return self.current

    def set_series(self, index):
        self.current = index

    @property
    def size_x(self):
        return self._array.shape[4]

    @property
    def size_y(self):
        return self._array.shape[3]

    @property
    def size_z(self):
        return self._array.shape[2]

    @property
    def size_c(self):
        return self._array.shape[1] * self.rgb_channel_count

    @property
    def size_t(self):
        return self._array.shape[0]

    @property
    def rgb_channel_count(self):
        return self._array.shape[5] if self._array.ndim == 6 else 1

    @property
    def is_rgb(self):
        return self.rgb_channel_count > 1

    @property
    def is_interleaved(self):
        return self.is_rgb

    @property
    def image_count(self):
        t, c, z = self._array.shape[:3]
        return t * c * z

    @property
    def dtype(self):
        return self._array.dtype

    @property
    def image_name(self):
        return self.names[self.current]

    @property
    def physical_pixel_sizes(self):
        return self.sizes

    def channel_min_max(self, channel):
        return self.min_max

    @property
    def metadata(self):
        return {"Format": "fake"}

    @property
    def description(self):
        return self._description

    def open_plane(self, index):
        if self.fail_on == (self.current, index):
            raise RuntimeError("boom")
        self.opened.append((self.current, index))
        z, c, t = self.get_zct_coords(index)
        return self._array[t, c, z]

    def reopen(self, path):
        return FakeReader(self.registry[path], path=path, registry=self.registry)

    def _close(self):
        self.close_calls += 1


def ramp(shape, dtype=np.uint8):
    """Array whose values count up from 0 in C order."""
    return np.arange(int(np.prod(shape))).reshape(shape).astype(dtype)


@pytest.fixture
def make_reader():
    return FakeReader


@pytest.fixture
def make_ramp():
    return ramp
