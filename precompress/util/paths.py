"""Utility functions for path operations."""

from pathlib import Path, PurePosixPath
from typing import Iterator, Tuple


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def iter_files(directory: Path) -> Iterator[Tuple[str, Path]]:
    """Yield ``(asset_name, path)`` for every file below ``directory``.

    Asset names are POSIX relative paths, sorted for a stable order.
    """
    for path in sorted(directory.rglob("*")):
        if path.is_file():
            yield path.relative_to(directory).as_posix(), path


def asset_path(directory: Path, name: str) -> Path:
    """Map an asset name back to a path below ``directory``.

    Query and fragment suffixes are not part of the on-disk name.
    """
    for separator in ("?", "#"):
        name = name.split(separator, 1)[0]
    return directory.joinpath(*PurePosixPath(name).parts)


def format_size(size_bytes: float) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024.0 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f} {size_names[i]}"
