from bioimport.readers.base import BioioReader, Reader, open_reader
from bioimport.readers.chain import apply_deferred_rgb, build_chain, needs_deferred_rgb
from bioimport.readers.stitcher import FileStitcher, find_similar_files
from bioimport.readers.wrappers import ChannelMerger, ChannelSeparator, ReaderWrapper

__all__ = [
    "Reader",
    "BioioReader",
    "open_reader",
    "ReaderWrapper",
    "ChannelSeparator",
    "ChannelMerger",
    "FileStitcher",
    "find_similar_files",
    "build_chain",
    "apply_deferred_rgb",
    "needs_deferred_rgb",
]
