"""Load a build output directory into an asset registry and write it back."""

from pathlib import Path
from typing import Dict

from ..util.logging import get_logger
from ..util.paths import asset_path, ensure_directory, iter_files
from .registry import AssetInfo, AssetRegistry
from .sources import RawSource

logger = get_logger(__name__)

# Files with these extensions are treated as already compressed
COMPRESSED_EXTENSIONS = {".gz", ".br", ".zz", ".deflate", ".zst", ".xz", ".bz2", ".zip", ".7z"}


def is_compressed_name(name: str) -> bool:
    """Check whether an asset name carries a compressed-file extension."""
    return Path(name).suffix.lower() in COMPRESSED_EXTENSIONS


def load_directory(directory: Path) -> AssetRegistry:
    """Build a registry from every file below ``directory``.

    A ``X.map`` file next to ``X`` is recorded as the source map of ``X``.
    """
    registry = AssetRegistry()
    names = []

    for name, path in iter_files(directory):
        info = AssetInfo(compressed=is_compressed_name(name))
        registry.add(name, RawSource(path.read_bytes()), info)
        names.append(name)

    present = set(names)
    for name in names:
        source_map = f"{name}.map"
        if source_map in present:
            registry.update(name, info_update={"related": {"sourceMap": source_map}})

    logger.info(f"Loaded {len(names)} assets from {directory}")
    return registry


def write_directory(registry: AssetRegistry, directory: Path) -> Dict[str, int]:
    """Flush emitted assets to disk and remove deleted ones.

    Returns counts of written and removed files.
    """
    written = 0
    removed = 0

    for name in sorted(registry.emitted):
        asset = registry.get(name)
        if asset is None:
            continue

        path = asset_path(directory, name)
        ensure_directory(path.parent)
        path.write_bytes(asset.source.buffer())
        written += 1

    for name in sorted(registry.deleted):
        path = asset_path(directory, name)
        if path.is_file():
            path.unlink()
            removed += 1

    logger.debug(f"Wrote {written} assets and removed {removed} from {directory}")
    return {"written": written, "removed": removed}
