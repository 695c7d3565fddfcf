"""Tests for true-color reconstruction."""

import numpy as np
import pytest

from bioimport.models import SampleKind
from bioimport.planes import pack_rgb
from bioimport.rgb import merge_channel_stacks, merge_rgb
from bioimport.stacks import TypedStack


def gray_stack(values, dtype=np.uint8, kind=SampleKind.BYTE):
    stack = TypedStack(kind, 2, 2)
    for j, value in enumerate(values):
        stack.add_slice(f"img:{j + 1}", np.full((2, 2), value, dtype=dtype))
    return stack


class TestMergeRgb:
    def test_groups_of_three(self):
        merged = merge_rgb(gray_stack([10, 20, 30, 40, 50, 60]), 3)

        assert merged.kind is SampleKind.RGB
        assert len(merged) == 2
        assert merged[0].shape == (2, 2, 3)
        np.testing.assert_array_equal(merged[0][0, 0], [10, 20, 30])
        np.testing.assert_array_equal(merged[1][0, 0], [40, 50, 60])
        assert merged.labels == ["img:1", "img:4"]

    def test_two_channels_blue_zero(self):
        merged = merge_rgb(gray_stack([10, 20, 30, 40, 50]), 2)

        assert len(merged) == 3
        np.testing.assert_array_equal(merged[0][0, 0], [10, 20, 0])
        # trailing partial group
        np.testing.assert_array_equal(merged[2][0, 0], [50, 0, 0])

    def test_extra_channels_ignored(self):
        merged = merge_rgb(gray_stack([1, 2, 3, 4]), 4)
        assert len(merged) == 1
        np.testing.assert_array_equal(merged[0][0, 0], [1, 2, 3])

    def test_short_planes_scaled(self):
        stack = TypedStack(SampleKind.USHORT, 2, 1)
        for _ in range(3):
            stack.add_slice("s", np.array([[0, 1000]], dtype=np.uint16))
        merged = merge_rgb(stack, 3)
        np.testing.assert_array_equal(merged[0][0, 1], [255, 255, 255])
        np.testing.assert_array_equal(merged[0][0, 0], [0, 0, 0])

    def test_packed_planes_to_luminance(self):
        stack = TypedStack(SampleKind.OTHER, 2, 2)
        white = pack_rgb(*[np.full((2, 2), 255, dtype=np.uint8)] * 3)
        stack.add_slice("p", white)
        merged = merge_rgb(stack, 1)
        np.testing.assert_array_equal(merged[0][0, 0], [255, 0, 0])


class TestMergeChannelStacks:
    def test_plane_by_plane(self):
        """c sub-stacks of n planes give n color planes from channels 0-2."""
        stacks = [gray_stack([1, 2, 3]), gray_stack([4, 5, 6]), gray_stack([7, 8, 9]), gray_stack([0, 0, 0])]

        merged = merge_channel_stacks(stacks)

        assert len(merged) == 3
        np.testing.assert_array_equal(merged[1][0, 0], [2, 5, 8])

    def test_missing_channels_zero(self):
        merged = merge_channel_stacks([gray_stack([1, 2]), gray_stack([3, 4])])
        assert len(merged) == 2
        np.testing.assert_array_equal(merged[0][0, 0], [1, 3, 0])

    def test_no_stacks(self):
        with pytest.raises(ValueError):
            merge_channel_stacks([])
