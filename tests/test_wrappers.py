"""Tests for channel wrappers and file stitching."""

import numpy as np
import pytest

from bioimport.exceptions import DecodeFailure
from bioimport.readers import ChannelMerger, ChannelSeparator, FileStitcher, find_similar_files


class TestChannelSeparator:
    def test_splits_rgb_bands(self, make_reader, make_ramp):
        data = make_ramp((1, 1, 2, 3, 4, 3))
        separator = ChannelSeparator(make_reader([data]))

        assert not separator.is_rgb
        assert separator.rgb_channel_count == 1
        assert separator.size_c == 3
        assert separator.image_count == 6
        assert separator.dimension_order == "XYCZT"
        np.testing.assert_array_equal(separator.open_plane(1), data[0, 0, 0, :, :, 1])
        np.testing.assert_array_equal(separator.open_plane(3), data[0, 0, 1, :, :, 0])

    def test_channels_first_order(self, make_reader, make_ramp):
        data = make_ramp((1, 1, 2, 3, 4, 3))
        separator = ChannelSeparator(make_reader([data], order="XYZCT"))

        assert separator.dimension_order == "XYCZT"
        np.testing.assert_array_equal(separator.open_plane(4), data[0, 0, 1, :, :, 1])

    def test_non_rgb_passes_through(self, make_reader, make_ramp):
        data = make_ramp((1, 2, 1, 3, 4))
        reader = make_reader([data])
        separator = ChannelSeparator(reader)

        assert separator.image_count == 2
        np.testing.assert_array_equal(separator.open_plane(1), data[0, 1, 0])


class TestChannelMerger:
    def test_merges_channels(self, make_reader, make_ramp):
        data = make_ramp((1, 3, 2, 3, 4))
        merger = ChannelMerger(make_reader([data]))

        assert merger.is_rgb
        assert merger.rgb_channel_count == 3
        assert merger.image_count == 2
        plane = merger.open_plane(1)
        assert plane.shape == (3, 4, 3)
        for c in range(3):
            np.testing.assert_array_equal(plane[..., c], data[0, c, 1])

    def test_too_many_channels_pass_through(self, make_reader, make_ramp):
        merger = ChannelMerger(make_reader([make_ramp((1, 5, 1, 3, 4))]))
        assert not merger.is_rgb
        assert merger.image_count == 5
        assert merger.open_plane(0).shape == (3, 4)


def test_wrapper_forwards_state(make_reader, make_ramp):
    reader = make_reader([make_ramp((1, 1, 1, 2, 2)), make_ramp((1, 1, 1, 2, 2))])
    chain = ChannelSeparator(ChannelSeparator(reader))

    chain.ignore_color_table = True
    chain.set_series(1)

    assert reader.ignore_color_table
    assert reader.series == 1
    assert chain.base is reader
    assert chain.metadata == {"Format": "fake"}


def test_close_once(make_reader, make_ramp):
    reader = make_reader([make_ramp((1, 1, 1, 2, 2))])
    chain = ChannelSeparator(reader)

    chain.close()
    chain.close()

    assert chain.closed
    assert reader.closed
    assert reader.close_calls == 1


def touch(directory, *names):
    for name in names:
        (directory / name).write_bytes(b"")
    return [str(directory / name) for name in names]


class TestFindSimilarFiles:
    def test_numbered_sequence(self, tmp_path):
        one, two, ten = touch(tmp_path, "scan_1.tif", "scan_2.tif", "scan_10.tif")
        touch(tmp_path, "other.tif", "scan_3.png")

        assert find_similar_files(two) == [one, two, ten]

    def test_no_digits(self, tmp_path):
        (path,) = touch(tmp_path, "image.tif")
        assert find_similar_files(path) == [path]


class TestFileStitcher:
    def stitcher(self, tmp_path, make_reader, make_ramp, second=None):
        first_path, second_path = touch(tmp_path, "t_1.tif", "t_2.tif")
        first = make_ramp((1, 2, 1, 3, 4))
        second = make_ramp((1, 2, 1, 3, 4)) + 100 if second is None else second
        reader = make_reader([first], path=first_path, registry={second_path: [second]})
        return reader, FileStitcher(ChannelSeparator(reader)), second

    def test_concatenates_along_t(self, tmp_path, make_reader, make_ramp):
        reader, stitcher, second = self.stitcher(tmp_path, make_reader, make_ramp)

        assert stitcher.file_count == 2
        assert stitcher.size_t == 2
        assert stitcher.image_count == 4
        # XYCZT: index 3 is c=1, t=1, which lives in the second file
        np.testing.assert_array_equal(stitcher.open_plane(3), second[0, 1, 0])

    def test_close_closes_every_file(self, tmp_path, make_reader, make_ramp):
        reader, stitcher, _ = self.stitcher(tmp_path, make_reader, make_ramp)
        sibling = stitcher._readers[1]

        stitcher.close()

        assert reader.close_calls == 1
        assert sibling.closed

    def test_mismatched_files(self, tmp_path, make_reader, make_ramp):
        with pytest.raises(DecodeFailure, match="size_x"):
            self.stitcher(tmp_path, make_reader, make_ramp, second=make_ramp((1, 2, 1, 3, 5)))
