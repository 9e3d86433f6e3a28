"""Assets module initialization."""

from .directory import COMPRESSED_EXTENSIONS, is_compressed_name, load_directory, write_directory
from .registry import Asset, AssetInfo, AssetRegistry
from .sources import RawSource

__all__ = [
    # sources
    "RawSource",
    # registry
    "Asset",
    "AssetInfo",
    "AssetRegistry",
    # directory
    "COMPRESSED_EXTENSIONS",
    "is_compressed_name",
    "load_directory",
    "write_directory",
]
