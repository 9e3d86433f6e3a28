"""Thread-safe registry of build output assets."""

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, List, Optional, Set, Union

from ..util.logging import get_logger
from .sources import RawSource

logger = get_logger(__name__)

RelatedValue = Union[str, List[str]]


@dataclass
class AssetInfo:
    """Metadata attached to an asset."""

    compressed: bool = False
    immutable: bool = False
    related: Dict[str, RelatedValue] = field(default_factory=dict)

    def related_names(self) -> List[str]:
        """Flatten the relation map into a list of asset names."""
        names: List[str] = []
        for value in self.related.values():
            if isinstance(value, str):
                names.append(value)
            elif value:
                names.extend(value)
        return names


@dataclass
class Asset:
    """A named output file with its source and metadata."""

    name: str
    source: RawSource
    info: AssetInfo


class AssetRegistry:
    """Mutable set of assets, safe for concurrent emit/update/delete.

    Every mutation holds one lock, so sibling compression tasks (and codec
    worker threads) never interleave partial writes.
    """

    def __init__(self) -> None:
        self._assets: Dict[str, Asset] = {}
        self._lock = threading.RLock()
        self.emitted: Set[str] = set()
        self.deleted: Set[str] = set()

    def add(self, name: str, source: RawSource, info: Optional[AssetInfo] = None) -> Asset:
        """Register an asset that already exists in the output (no bookkeeping)."""
        asset = Asset(name=name, source=source, info=info or AssetInfo())
        with self._lock:
            self._assets[name] = asset
        return asset

    def get(self, name: str) -> Optional[Asset]:
        with self._lock:
            return self._assets.get(name)

    def names(self) -> List[str]:
        """Snapshot of the current asset names."""
        with self._lock:
            return list(self._assets)

    def emit(self, name: str, source: RawSource, info: Optional[AssetInfo] = None) -> Asset:
        """Add or replace an asset produced by this run."""
        with self._lock:
            existing = self._assets.get(name)
            if existing is not None and existing.source != source:
                logger.warning(f"Overwriting existing asset with different content: {name}")

            asset = Asset(name=name, source=source, info=info or AssetInfo())
            self._assets[name] = asset
            self.emitted.add(name)
            self.deleted.discard(name)

        logger.debug(f"Emitted asset {name} ({source.size()} bytes)")
        return asset

    def update(
        self,
        name: str,
        source: Optional[RawSource] = None,
        info_update: Optional[Dict[str, Any]] = None,
    ) -> Asset:
        """Replace the source and/or merge new metadata into an asset.

        ``related`` is merged key by key; a ``None`` value removes the relation.
        """
        with self._lock:
            asset = self._assets.get(name)
            if asset is None:
                raise KeyError(f"Asset not found: {name}")

            info = asset.info
            if info_update:
                updates = dict(info_update)
                related = dict(info.related)
                for key, value in (updates.pop("related", None) or {}).items():
                    if value is None:
                        related.pop(key, None)
                    else:
                        related[key] = value
                info = replace(info, related=related, **updates)

            updated = Asset(name=name, source=source or asset.source, info=info)
            self._assets[name] = updated
            return updated

    def delete(self, name: str) -> None:
        """Remove an asset together with the assets only it relates to."""
        with self._lock:
            asset = self._assets.pop(name, None)
            if asset is None:
                return

            self.deleted.add(name)
            self.emitted.discard(name)

            for related_name in asset.info.related_names():
                if related_name in self._assets and not self._is_related_in(related_name):
                    self.delete(related_name)

        logger.debug(f"Deleted asset {name}")

    def _is_related_in(self, name: str) -> bool:
        return any(name in asset.info.related_names() for asset in self._assets.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._assets

    def __len__(self) -> int:
        with self._lock:
            return len(self._assets)

    def __iter__(self) -> Iterator[Asset]:
        with self._lock:
            return iter(list(self._assets.values()))
