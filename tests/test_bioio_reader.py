"""Tests for the BioIO-backed base reader on real TIFF files."""

import numpy as np
import pytest
import tifffile

from bioimport.collaborators import DefaultPrompter
from bioimport.exceptions import MissingSource, UnsupportedFormat
from bioimport.importer import Importer
from bioimport.models import ImportOptions, SampleKind
from bioimport.readers import open_reader


def test_missing_path(tmp_path):
    with pytest.raises(MissingSource) as info:
        open_reader(tmp_path / "absent.tif")
    assert isinstance(info.value, FileNotFoundError)


def test_unreadable_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("not an image")
    with pytest.raises(UnsupportedFormat):
        open_reader(path)


@pytest.fixture
def zstack(tmp_path):
    """Three-plane 16-bit ImageJ TIFF."""
    data = (np.arange(3 * 8 * 6, dtype=np.uint16).reshape(3, 8, 6) * 7).astype(np.uint16)
    path = tmp_path / "zstack.tif"
    tifffile.imwrite(str(path), data, imagej=True, metadata={"axes": "ZYX"})
    return path, data


def test_reads_planes(zstack):
    tiff_reader = pytest.importorskip("bioio_tifffile").Reader
    path, data = zstack

    with open_reader(path, reader=tiff_reader) as reader:
        assert reader.series_count == 1
        assert (reader.size_x, reader.size_y, reader.size_z) == (6, 8, 3)
        assert reader.size_c == 1
        assert reader.image_count == 3
        assert not reader.is_rgb
        assert reader.pixel_type == "uint16"
        np.testing.assert_array_equal(reader.open_plane(1), data[1])
    assert reader.closed


def test_import_tiff(zstack):
    tiff_reader = pytest.importorskip("bioio_tifffile").Reader
    path, data = zstack

    importer = Importer(
        prompter=DefaultPrompter(options=ImportOptions()),
        resolver=lambda p: open_reader(p, reader=tiff_reader),
    )
    result = importer.run(str(path))

    assert result.success, result.error
    (product,) = result.products
    assert product.title.startswith("zstack.tif")
    assert product.title.endswith(" - Ch1")
    assert product.stack.kind is SampleKind.USHORT
    assert len(product.stack) == 3
    np.testing.assert_array_equal(product.stack.processor(3), data[2])
