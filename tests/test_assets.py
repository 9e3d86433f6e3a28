"""Tests for the asset registry and output directory handling."""

import tempfile
import threading
from pathlib import Path

import pytest

from precompress.assets import (
    AssetInfo,
    AssetRegistry,
    RawSource,
    is_compressed_name,
    load_directory,
    write_directory,
)


class TestRawSource:
    """Test asset sources."""

    def test_text_is_encoded(self):
        source = RawSource("héllo")

        assert source.buffer() == "héllo".encode("utf-8")
        assert source.size() == 6

    def test_equality(self):
        assert RawSource(b"a") == RawSource(bytearray(b"a"))
        assert RawSource(b"a") != RawSource(b"b")


class TestAssetRegistry:
    """Test registry mutations."""

    def test_emit_tracks_names(self):
        registry = AssetRegistry()
        registry.emit("app.js.gz", RawSource(b"gz"), AssetInfo(compressed=True))

        assert "app.js.gz" in registry
        assert registry.emitted == {"app.js.gz"}
        assert registry.get("app.js.gz").info.compressed is True

    def test_update_merges_related(self):
        """Test that relations are merged and None removes one."""
        registry = AssetRegistry()
        registry.add("app.js", RawSource(b"x"), AssetInfo(related={"sourceMap": "app.js.map"}))

        registry.update("app.js", info_update={"related": {"gzipped": "app.js.gz"}})
        assert registry.get("app.js").info.related == {"sourceMap": "app.js.map", "gzipped": "app.js.gz"}

        registry.update("app.js", info_update={"related": {"sourceMap": None}})
        assert registry.get("app.js").info.related == {"gzipped": "app.js.gz"}

    def test_update_missing_asset(self):
        with pytest.raises(KeyError):
            AssetRegistry().update("missing.js", info_update={"immutable": True})

    def test_delete_removes_related_assets(self):
        """Test that deleting an asset drops its source map too."""
        registry = AssetRegistry()
        registry.add("app.js", RawSource(b"x"), AssetInfo(related={"sourceMap": "app.js.map"}))
        registry.add("app.js.map", RawSource(b"{}"))

        registry.delete("app.js")

        assert "app.js" not in registry
        assert "app.js.map" not in registry
        assert registry.deleted == {"app.js", "app.js.map"}

    def test_delete_keeps_assets_related_elsewhere(self):
        """Test that shared related assets survive while still referenced."""
        registry = AssetRegistry()
        registry.add("a.js", RawSource(b"a"), AssetInfo(related={"sourceMap": "shared.map"}))
        registry.add("b.js", RawSource(b"b"), AssetInfo(related={"sourceMap": "shared.map"}))
        registry.add("shared.map", RawSource(b"{}"))

        registry.delete("a.js")

        assert "shared.map" in registry

    def test_concurrent_emits(self):
        """Test that emits from many threads all land."""
        registry = AssetRegistry()

        def worker(i):
            registry.emit(f"file{i}.gz", RawSource(bytes([i])))

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(50)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 50


class TestDirectory:
    """Test loading and writing output directories."""

    def test_compressed_names(self):
        assert is_compressed_name("app.js.gz") is True
        assert is_compressed_name("app.js.BR") is True
        assert is_compressed_name("app.js") is False

    def test_load_directory(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / "js").mkdir()
            (root / "js" / "app.js").write_bytes(b"console.log(1)")
            (root / "js" / "app.js.map").write_bytes(b"{}")
            (root / "old.css.gz").write_bytes(b"\x1f\x8b")

            registry = load_directory(root)

            assert sorted(registry.names()) == ["js/app.js", "js/app.js.map", "old.css.gz"]
            assert registry.get("js/app.js").info.related == {"sourceMap": "js/app.js.map"}
            assert registry.get("old.css.gz").info.compressed is True
            assert registry.emitted == set()

    def test_write_directory(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / "app.js").write_bytes(b"original")

            registry = load_directory(root)
            registry.emit("nested/app.js.gz", RawSource(b"gz"))
            registry.delete("app.js")

            counts = write_directory(registry, root)

            assert counts == {"written": 1, "removed": 1}
            assert (root / "nested" / "app.js.gz").read_bytes() == b"gz"
            assert not (root / "app.js").exists()
