"""Content-addressed cache of compression results.

Entries are keyed by an identifier built from the asset name, codec identity
and codec options, and validated by an etag derived from the asset content.
The etag is only computed when a stored record for the identifier exists or
when a result is stored, so small assets that never reach a codec are never
hashed.
"""

import asyncio
import json
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from ..assets.sources import RawSource
from ..util.hashing import calculate_bytes_hash, serialize_value
from ..util.logging import get_logger
from ..util.paths import ensure_directory

logger = get_logger(__name__)


class LazyHashedEtag:
    """Content hash of a source, computed on first access."""

    def __init__(self, source: RawSource, algorithm: str = "sha256") -> None:
        self._source = source
        self._algorithm = algorithm
        self._value: Optional[str] = None

    @property
    def computed(self) -> bool:
        return self._value is not None

    @property
    def value(self) -> str:
        if self._value is None:
            self._value = calculate_bytes_hash(self._source.buffer(), self._algorithm)
        return self._value

    def __str__(self) -> str:
        return self.value


class CacheKey:
    """Identity of one compression result.

    Two keys are equal iff asset name, codec identity, codec options and
    content hash are all equal. Option maps are encoded with sorted keys,
    so their insertion order does not matter.
    """

    def __init__(
        self,
        asset_name: str,
        codec_identity: str,
        codec_options: Mapping[str, Any],
        etag: LazyHashedEtag,
    ) -> None:
        self.asset_name = asset_name
        self.codec_identity = codec_identity
        self.codec_options = dict(codec_options)
        self.etag = etag
        self.identifier = serialize_value(
            {
                "name": asset_name,
                "codec": codec_identity,
                "options": self.codec_options,
            }
        )

    @property
    def content_hash(self) -> str:
        return self.etag.value

    def encode(self) -> str:
        """Full deterministic encoding, including the content hash."""
        return f"{self.identifier}|{self.content_hash}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheKey):
            return NotImplemented
        return self.encode() == other.encode()

    def __hash__(self) -> int:
        return hash(self.encode())

    def __repr__(self) -> str:
        return f"CacheKey(asset_name={self.asset_name!r}, codec={self.codec_identity!r})"


@dataclass
class CacheEntry:
    """Stored compression result.

    ``source`` is set once the result passed the ratio gate; such an entry is
    committed and is reused as-is. An entry without ``source`` still saves
    re-running the codec.
    """

    compressed: bytes
    source: Optional[RawSource] = None

    @property
    def committed(self) -> bool:
        return self.source is not None


class CacheStore:
    """Backend of a cache scope. Implementations must be thread-safe."""

    def etag_of(self, identifier: str) -> Optional[str]:
        raise NotImplementedError

    def read(self, identifier: str) -> Optional[CacheEntry]:
        raise NotImplementedError

    def write(self, identifier: str, etag: str, entry: CacheEntry) -> None:
        raise NotImplementedError


class MemoryCacheStore(CacheStore):
    """In-process cache scope."""

    def __init__(self) -> None:
        self._items: Dict[str, Tuple[str, CacheEntry]] = {}
        self._lock = threading.Lock()

    def etag_of(self, identifier: str) -> Optional[str]:
        with self._lock:
            item = self._items.get(identifier)
        return item[0] if item else None

    def read(self, identifier: str) -> Optional[CacheEntry]:
        with self._lock:
            item = self._items.get(identifier)
        return item[1] if item else None

    def write(self, identifier: str, etag: str, entry: CacheEntry) -> None:
        with self._lock:
            self._items[identifier] = (etag, entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class DiskCacheStore(CacheStore):
    """Cache scope persisted below a directory.

    Each identifier maps to ``<digest>.json`` (identifier, etag, committed
    flag) and ``<digest>.bin`` (compressed bytes). Files are written to a
    temporary name and renamed into place, so concurrent writers of the same
    key never leave a torn record.
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = ensure_directory(Path(cache_dir))

    def _paths(self, identifier: str) -> Tuple[Path, Path]:
        digest = calculate_bytes_hash(identifier.encode("utf-8"))
        shard = self.cache_dir / digest[:2]
        return shard / f"{digest}.json", shard / f"{digest}.bin"

    def _load_record(self, identifier: str) -> Optional[Dict[str, Any]]:
        record_path, _ = self._paths(identifier)
        if not record_path.exists():
            return None

        try:
            with open(record_path, "r") as f:
                record = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache record {record_path}: {e}")
            return None

        if record.get("identifier") != identifier:
            return None
        return record

    def etag_of(self, identifier: str) -> Optional[str]:
        record = self._load_record(identifier)
        return record["etag"] if record else None

    def read(self, identifier: str) -> Optional[CacheEntry]:
        record = self._load_record(identifier)
        if record is None:
            return None

        _, payload_path = self._paths(identifier)
        try:
            compressed = payload_path.read_bytes()
        except OSError as e:
            logger.warning(f"Missing cache payload {payload_path}: {e}")
            return None

        if calculate_bytes_hash(compressed) != record.get("payload_hash"):
            logger.warning(f"Cache payload does not match its record: {payload_path}")
            return None

        source = RawSource(compressed) if record.get("committed") else None
        return CacheEntry(compressed=compressed, source=source)

    def write(self, identifier: str, etag: str, entry: CacheEntry) -> None:
        record_path, payload_path = self._paths(identifier)
        ensure_directory(record_path.parent)

        record = {
            "identifier": identifier,
            "etag": etag,
            "committed": entry.committed,
            "payload_hash": calculate_bytes_hash(entry.compressed),
        }
        self._atomic_write(payload_path, entry.compressed)
        self._atomic_write(record_path, json.dumps(record, indent=2).encode("utf-8"))

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


class CompressionCache:
    """Lookup and store of compression results over a cache scope."""

    def __init__(self, store: Optional[CacheStore] = None) -> None:
        self.backend = store if store is not None else MemoryCacheStore()
        self.hits = 0
        self.misses = 0

    def _lookup(self, key: CacheKey) -> Optional[CacheEntry]:
        stored_etag = self.backend.etag_of(key.identifier)
        if stored_etag is None or stored_etag != key.content_hash:
            return None
        return self.backend.read(key.identifier)

    async def lookup(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the stored entry for ``key``, or ``None`` on a miss."""
        entry = await asyncio.to_thread(self._lookup, key)

        if entry is None:
            self.misses += 1
            logger.debug(f"Cache miss: {key.asset_name} [{key.codec_identity}]")
        else:
            self.hits += 1
            logger.debug(
                f"Cache hit: {key.asset_name} [{key.codec_identity}]"
                f"{' (committed)' if entry.committed else ''}"
            )
        return entry

    async def store(self, key: CacheKey, entry: CacheEntry) -> None:
        """Persist ``entry`` under ``key``; last writer wins."""
        await asyncio.to_thread(self.backend.write, key.identifier, key.content_hash, entry)
