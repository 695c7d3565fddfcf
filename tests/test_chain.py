"""Tests for reader chain assembly and the deferred RGB rule."""

import numpy as np
import pytest

from bioimport.exceptions import DecodeFailure
from bioimport.models import ImportOptions
from bioimport.readers import (
    ChannelMerger,
    ChannelSeparator,
    FileStitcher,
    apply_deferred_rgb,
    build_chain,
    needs_deferred_rgb,
)


class TestBuildChain:
    def test_separator_by_default(self, make_reader, make_ramp):
        chain = build_chain(make_reader([make_ramp((1, 1, 1, 2, 2))]), ImportOptions())
        assert isinstance(chain, ChannelSeparator)

    def test_merger(self, make_reader, make_ramp):
        chain = build_chain(
            make_reader([make_ramp((1, 1, 1, 2, 2))]), ImportOptions(merge_channels=True)
        )
        assert isinstance(chain, ChannelMerger)

    def test_stitcher_on_top(self, tmp_path, make_reader, make_ramp):
        path = tmp_path / "single.tif"
        path.write_bytes(b"")
        reader = make_reader([make_ramp((1, 1, 1, 2, 2))], path=str(path))

        chain = build_chain(reader, ImportOptions(stitch_files=True, ignore_color_tables=True))

        assert isinstance(chain, FileStitcher)
        assert isinstance(chain.inner, ChannelSeparator)
        assert chain.file_count == 1
        assert reader.ignore_color_table

    def test_construction_failure(self, make_reader, make_ramp):
        reader = make_reader([make_ramp((1, 1, 1, 2, 2))], path=None)
        with pytest.raises(DecodeFailure):
            build_chain(reader, ImportOptions(stitch_files=True))


class TestDeferredRgb:
    def test_rule(self, make_reader, make_ramp):
        rgb16 = make_ramp((1, 1, 1, 2, 2, 3), np.uint16)
        assert needs_deferred_rgb(ChannelSeparator(make_reader([rgb16])))
        assert not needs_deferred_rgb(ChannelSeparator(make_reader([rgb16], min_max=(0, 10))))
        assert not needs_deferred_rgb(make_reader([make_ramp((1, 1, 1, 2, 2, 3))]))
        assert not needs_deferred_rgb(make_reader([make_ramp((1, 3, 1, 2, 2), np.uint16)]))

    def test_merged_channels_flagged(self, make_reader, make_ramp):
        """Merging a 16-bit multi-channel source presents RGB planes of deep samples."""
        reader = make_reader([make_ramp((1, 3, 2, 2, 2), np.uint16)])
        options = ImportOptions(merge_channels=True)
        chain = build_chain(reader, options)

        assert needs_deferred_rgb(chain)
        wrapped, flagged = apply_deferred_rgb(chain, options)

        assert flagged == {0}
        assert isinstance(wrapped, ChannelSeparator)
        assert wrapped.image_count == 6
        assert wrapped.open_plane(4).shape == (2, 2)

    def test_merged_bytes_not_flagged(self, make_reader, make_ramp):
        chain = ChannelMerger(make_reader([make_ramp((1, 3, 2, 2, 2))]))
        assert not needs_deferred_rgb(chain)

    def test_flags_series_and_wraps(self, make_reader, make_ramp):
        reader = make_reader(
            [make_ramp((1, 1, 1, 2, 2)), make_ramp((1, 1, 1, 2, 2, 3), np.uint16)]
        )
        chain = build_chain(reader, ImportOptions())

        wrapped, flagged = apply_deferred_rgb(chain, ImportOptions())

        assert flagged == {1}
        assert isinstance(wrapped, ChannelSeparator)
        assert wrapped.inner is chain
        assert reader.series == 0

    def test_ignored_with_color_tables_off(self, make_reader, make_ramp):
        reader = make_reader([make_ramp((1, 1, 1, 2, 2, 3), np.uint16)])
        options = ImportOptions(ignore_color_tables=True)
        chain = build_chain(reader, options)

        wrapped, flagged = apply_deferred_rgb(chain, options)

        assert wrapped is chain
        assert flagged == set()
