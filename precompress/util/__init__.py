"""Utility module initialization."""

from .hashing import calculate_bytes_hash, calculate_text_hash, serialize_callable, serialize_value
from .logging import get_logger, setup_logging
from .paths import asset_path, ensure_directory, format_size, iter_files

__all__ = [
    # hashing
    "calculate_bytes_hash",
    "calculate_text_hash",
    "serialize_callable",
    "serialize_value",
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "asset_path",
    "ensure_directory",
    "format_size",
    "iter_files",
]
