# -*- coding: utf-8 -*-
"""Treat a numbered file sequence as one source.

``scan_0001.tif``, ``scan_0002.tif``, ... differ only in their last run of
digits. :class:`FileStitcher` opens every file of such a sequence through the
same reader chain and concatenates them along T.
"""

import re
from pathlib import Path
from typing import List

from loguru import logger

from bioimport.exceptions import DecodeFailure
from bioimport.readers.base import Reader
from bioimport.readers.wrappers import ReaderWrapper

_LAST_NUMBER = re.compile(r"^(?P<head>.*?)(?P<num>\d+)(?P<tail>\D*)$")


def find_similar_files(path):
    # type: (str) -> List[str]
    """List the files of the numbered sequence ``path`` belongs to.

    Files are sorted by their number. A name without digits is its own
    sequence.

    :param path: Path to one file of the sequence
    :return: Paths of all files in the sequence, ``path`` included
    """
    path = Path(path)
    m = _LAST_NUMBER.match(path.name)
    if not m:
        return [str(path)]

    pattern = re.compile(
        rf"^{re.escape(m.group('head'))}(\d+){re.escape(m.group('tail'))}$"
    )
    matches = []
    for candidate in path.parent.iterdir():
        if not candidate.is_file():
            continue
        found = pattern.match(candidate.name)
        if found:
            matches.append((int(found.group(1)), candidate.name, str(candidate)))

    if not matches:
        return [str(path)]
    matches.sort()
    return [item[2] for item in matches]


class FileStitcher(ReaderWrapper):
    """Concatenates a numbered file sequence along T.

    Every file must have the same series count, and per series the same X, Y,
    Z, C, T sizes and pixel type as the first one.
    """

    def __init__(self, inner):
        # type: (Reader) -> None
        super().__init__(inner)
        self.files = find_similar_files(inner.path)
        own = str(Path(inner.path))
        self._readers = []  # type: List[Reader]
        try:
            for file_path in self.files:
                if str(Path(file_path)) == own:
                    self._readers.append(inner)
                else:
                    self._readers.append(inner.reopen(file_path))
            self._check_consistent()
        except Exception:
            for reader in self._readers:
                if reader is not inner:
                    reader.close()
            raise
        logger.debug(f"Stitching {len(self.files)} file(s) for {Path(own).name}")

    def _check_consistent(self):
        # type: () -> None
        first = self._readers[0]
        for reader in self._readers[1:]:
            if reader.series_count != first.series_count:
                raise DecodeFailure(
                    f"{Path(reader.path).name} has {reader.series_count} series, "
                    f"expected {first.series_count}"
                )
            for attr in ("size_x", "size_y", "size_z", "size_c", "size_t", "dtype"):
                if getattr(reader, attr) != getattr(first, attr):
                    raise DecodeFailure(
                        f"{Path(reader.path).name} does not match {Path(first.path).name} "
                        f"({attr}: {getattr(reader, attr)} != {getattr(first, attr)})"
                    )

    @property
    def file_count(self):
        # type: () -> int
        return len(self._readers)

    def set_series(self, index):
        for reader in self._readers:
            reader.set_series(index)
        self._check_consistent()

    @property
    def size_t(self):
        return self.inner.size_t * self.file_count

    @property
    def image_count(self):
        return self.inner.image_count * self.file_count

    def open_plane(self, index):
        z, c, t = self.get_zct_coords(index)
        per_file = self.inner.size_t
        reader = self._readers[t // per_file]
        return reader.open_plane(reader.get_index(z, c, t % per_file))

    def _close(self):
        for reader in self._readers:
            reader.close()
        if not any(reader is self.inner for reader in self._readers):
            self.inner.close()
