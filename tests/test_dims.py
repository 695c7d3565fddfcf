"""Tests for plane index rasterization."""

import pytest

from bioimport.readers import dims


class TestGetIndex:
    def test_channels_fastest(self):
        """In XYCZT, C varies fastest after XY."""
        assert dims.get_index("XYCZT", 2, 3, 1, 0, 1, 0) == 1
        assert dims.get_index("XYCZT", 2, 3, 1, 1, 2, 0) == 5

    def test_z_fastest(self):
        assert dims.get_index("XYZCT", 2, 3, 1, 0, 1, 0) == 2
        assert dims.get_index("XYZCT", 2, 3, 1, 1, 2, 0) == 5

    def test_time_slowest(self):
        assert dims.get_index("XYZCT", 2, 3, 4, 0, 0, 1) == 6

    def test_out_of_range_coordinate(self):
        with pytest.raises(ValueError):
            dims.get_index("XYCZT", 2, 3, 1, 2, 0, 0)

    def test_invalid_order(self):
        with pytest.raises(ValueError, match="Invalid dimension order"):
            dims.get_index("XYQZT", 1, 1, 1, 0, 0, 0)


class TestGetZctCoords:
    @pytest.mark.parametrize("order", dims.DIMENSION_ORDERS)
    def test_inverse_of_get_index(self, order):
        """Every plane index maps back to the coordinate it came from."""
        size_z, size_c, size_t = 2, 3, 4
        for index in range(size_z * size_c * size_t):
            z, c, t = dims.get_zct_coords(order, size_z, size_c, size_t, index)
            assert dims.get_index(order, size_z, size_c, size_t, z, c, t) == index

    def test_out_of_range_index(self):
        with pytest.raises(ValueError):
            dims.get_zct_coords("XYCZT", 1, 2, 1, 2)


def test_channels_first():
    assert dims.channels_first("XYZTC") == "XYCZT"
    assert dims.channels_first("XYTCZ") == "XYCTZ"
    assert dims.channels_first("XYCZT") == "XYCZT"
