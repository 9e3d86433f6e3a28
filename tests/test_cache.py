"""Tests for the compression cache."""

import asyncio
import json
import tempfile
from pathlib import Path
from unittest.mock import patch

from precompress.assets.sources import RawSource
from precompress.engine.cache import (
    CacheEntry,
    CacheKey,
    CompressionCache,
    DiskCacheStore,
    LazyHashedEtag,
    MemoryCacheStore,
)


def make_key(name="app.js", content=b"console.log(1)", codec="gzip", options=None):
    return CacheKey(
        asset_name=name,
        codec_identity=codec,
        codec_options=options if options is not None else {"level": 9},
        etag=LazyHashedEtag(RawSource(content)),
    )


class TestCacheKey:
    """Test cache key identity."""

    def test_equal_keys(self):
        assert make_key() == make_key()
        assert hash(make_key()) == hash(make_key())

    def test_option_order_does_not_matter(self):
        """Test that option maps are encoded order-independently."""
        first = make_key(options={"level": 9, "strategy": 1})
        second = make_key(options={"strategy": 1, "level": 9})

        assert first.identifier == second.identifier
        assert first == second

    def test_each_component_distinguishes(self):
        """Test that every component of the key takes part in equality."""
        base = make_key()

        assert base != make_key(name="other.js")
        assert base != make_key(codec="brotli")
        assert base != make_key(options={"level": 1})
        assert base != make_key(content=b"console.log(2)")


class TestLazyHashedEtag:
    """Test deferred content hashing."""

    def test_hash_is_computed_on_demand(self):
        etag = LazyHashedEtag(RawSource(b"abc"))

        assert etag.computed is False
        assert len(etag.value) == 64
        assert etag.computed is True


class TestCompressionCache:
    """Test lookup and store against the memory scope."""

    def test_miss_then_hit(self):
        """Test that a stored entry is returned byte-identical."""
        cache = CompressionCache(MemoryCacheStore())
        key = make_key()

        assert asyncio.run(cache.lookup(key)) is None

        asyncio.run(cache.store(key, CacheEntry(compressed=b"\x1f\x8bdata", source=RawSource(b"\x1f\x8bdata"))))
        entry = asyncio.run(cache.lookup(make_key()))

        assert entry is not None
        assert entry.compressed == b"\x1f\x8bdata"
        assert entry.committed is True
        assert cache.hits == 1
        assert cache.misses == 1

    def test_changed_content_is_a_miss(self):
        """Test that a different content hash invalidates the entry."""
        cache = CompressionCache()
        asyncio.run(cache.store(make_key(), CacheEntry(compressed=b"zz")))

        assert asyncio.run(cache.lookup(make_key(content=b"changed"))) is None

    def test_lookup_without_record_does_not_hash(self):
        """Test that a miss on an unknown identifier never hashes the content."""
        cache = CompressionCache()
        key = make_key()

        with patch("precompress.engine.cache.calculate_bytes_hash") as mock_hash:
            assert asyncio.run(cache.lookup(key)) is None
            mock_hash.assert_not_called()

        assert key.etag.computed is False

    def test_partial_entry(self):
        """Test that rejected results are stored without a source."""
        cache = CompressionCache()
        asyncio.run(cache.store(make_key(), CacheEntry(compressed=b"big")))

        entry = asyncio.run(cache.lookup(make_key()))

        assert entry.compressed == b"big"
        assert entry.committed is False

    def test_concurrent_stores_last_writer_wins(self):
        """Test idempotent concurrent stores of the same key."""
        cache = CompressionCache()

        async def store_many():
            await asyncio.gather(
                *(cache.store(make_key(), CacheEntry(compressed=b"same")) for _ in range(10))
            )

        asyncio.run(store_many())

        assert len(cache.backend) == 1
        assert asyncio.run(cache.lookup(make_key())).compressed == b"same"


class TestDiskCacheStore:
    """Test the persistent cache scope."""

    def test_entries_survive_a_new_store(self):
        """Test that entries written by one store are read by another."""
        with tempfile.TemporaryDirectory() as temp_dir:
            cache_dir = Path(temp_dir) / "cache"
            first = CompressionCache(DiskCacheStore(cache_dir))
            asyncio.run(first.store(make_key(), CacheEntry(compressed=b"gz", source=RawSource(b"gz"))))

            second = CompressionCache(DiskCacheStore(cache_dir))
            entry = asyncio.run(second.lookup(make_key()))

            assert entry is not None
            assert entry.compressed == b"gz"
            assert entry.committed is True
            assert entry.source.buffer() == b"gz"

    def test_partial_entry_round_trip(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            store = DiskCacheStore(Path(temp_dir))
            store.write("id", "etag", CacheEntry(compressed=b"raw"))

            entry = store.read("id")

            assert store.etag_of("id") == "etag"
            assert entry.compressed == b"raw"
            assert entry.source is None

    def test_corrupt_record_is_ignored(self):
        """Test that an unreadable record is treated as a miss."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store = DiskCacheStore(Path(temp_dir))
            store.write("id", "etag", CacheEntry(compressed=b"raw"))

            record_path, _ = store._paths("id")
            record_path.write_text("{not json")

            assert store.etag_of("id") is None

    def test_tampered_payload_is_ignored(self):
        """Test that a payload not matching its record is a miss."""
        with tempfile.TemporaryDirectory() as temp_dir:
            store = DiskCacheStore(Path(temp_dir))
            store.write("id", "etag", CacheEntry(compressed=b"raw"))

            _, payload_path = store._paths("id")
            payload_path.write_bytes(b"other")

            assert store.read("id") is None

    def test_record_contents(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            store = DiskCacheStore(Path(temp_dir))
            store.write("id", "etag", CacheEntry(compressed=b"raw", source=RawSource(b"raw")))

            record_path, _ = store._paths("id")
            record = json.loads(record_path.read_text())

            assert record["identifier"] == "id"
            assert record["committed"] is True
