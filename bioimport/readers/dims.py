# -*- coding: utf-8 -*-
"""Rasterization of (Z, C, T) plane coordinates.

A dimension order such as ``XYCZT`` names the axes from fastest to slowest
varying; the first two letters are always ``XY``. The plane index of
coordinate ``(z, c, t)`` follows from the order of the last three letters.
"""

from typing import Tuple

DIMENSION_ORDERS = ("XYZCT", "XYZTC", "XYCZT", "XYCTZ", "XYTZC", "XYTCZ")


def _axes(order, size_z, size_c, size_t):
    # type: (str, int, int, int) -> list
    if order not in DIMENSION_ORDERS:
        raise ValueError(f"Invalid dimension order: {order}")
    sizes = {"Z": size_z, "C": size_c, "T": size_t}
    return [(axis, sizes[axis]) for axis in order[2:]]


def get_index(order, size_z, size_c, size_t, z, c, t):
    # type: (str, int, int, int, int, int, int) -> int
    """Return the plane index of coordinate ``(z, c, t)``.

    :param order: Dimension order, e.g. ``"XYCZT"``
    :param size_c: Effective channel count (channels per plane group)
    :raises ValueError: If a coordinate is out of range
    """
    coords = {"Z": z, "C": c, "T": t}
    index = 0
    scale = 1
    for axis, size in _axes(order, size_z, size_c, size_t):
        value = coords[axis]
        if value < 0 or value >= size:
            raise ValueError(f"{axis} index {value} out of range [0, {size})")
        index += value * scale
        scale *= size
    return index


def get_zct_coords(order, size_z, size_c, size_t, index):
    # type: (str, int, int, int, int) -> Tuple[int, int, int]
    """Return the ``(z, c, t)`` coordinate of a plane index."""
    total = size_z * size_c * size_t
    if index < 0 or index >= total:
        raise ValueError(f"Plane index {index} out of range [0, {total})")
    coords = {}
    for axis, size in _axes(order, size_z, size_c, size_t):
        coords[axis] = index % size
        index //= size
    return coords["Z"], coords["C"], coords["T"]


def channels_first(order):
    # type: (str) -> str
    """Move C to the fastest position after XY, keeping Z and T in order."""
    rest = "".join(axis for axis in order[2:] if axis != "C")
    return "XYC" + rest
