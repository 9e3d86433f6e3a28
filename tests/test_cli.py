"""Tests for the command line interface."""

import gzip
import tempfile
from pathlib import Path

from click.testing import CliRunner

from precompress.cli import cli

TEXT = b"body { color: red; margin: 0 auto; }\n" * 100


def _write_config(root: Path) -> Path:
    config_path = root / "config.yaml"
    config_path.write_text(f"cache_dir: {root / 'cache'}\n")
    return config_path


class TestCompressCommand:
    """Test the compress command."""

    def test_compress_directory(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            dist = root / "dist"
            dist.mkdir()
            (dist / "site.css").write_bytes(TEXT)
            (dist / "tiny.txt").write_bytes(b"hi")

            result = CliRunner().invoke(
                cli, ["-c", str(_write_config(root)), "compress", str(dist), "--threshold", "10"]
            )

            assert result.exit_code == 0, result.output
            assert gzip.decompress((dist / "site.css.gz").read_bytes()) == TEXT
            assert not (dist / "tiny.txt.gz").exists()
            assert (dist / "site.css").exists()

    def test_multiple_algorithms_with_delete(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            dist = root / "dist"
            dist.mkdir()
            (dist / "site.css").write_bytes(TEXT)

            result = CliRunner().invoke(
                cli,
                ["-c", str(_write_config(root)), "compress", str(dist),
                 "-a", "gzip", "-a", "brotli", "--delete-original", "--no-cache"],
            )

            assert result.exit_code == 0, result.output
            assert sorted(p.name for p in dist.iterdir()) == ["site.css.br", "site.css.gz"]

    def test_filenames_apply_to_configured_stages(self):
        """Test that --filename values map onto stages from the config file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            dist = root / "dist"
            dist.mkdir()
            (dist / "site.css").write_bytes(TEXT)
            config_path = root / "config.yaml"
            config_path.write_text(
                f"cache_dir: {root / 'cache'}\n"
                "compression:\n"
                "  algorithms:\n"
                "    - algorithm: gzip\n"
                "    - algorithm: brotli\n"
                "      filename: '[path][base].br'\n"
            )

            result = CliRunner().invoke(
                cli,
                ["-c", str(config_path), "compress", str(dist), "--no-cache",
                 "-f", "[path][base].gzip", "-f", "[path][base].brotli", "-f", "[path][base].extra"],
            )

            assert result.exit_code == 0, result.output
            assert sorted(p.name for p in dist.iterdir()) == ["site.css", "site.css.brotli", "site.css.gzip"]
            assert gzip.decompress((dist / "site.css.gzip").read_bytes()) == TEXT
            assert "Ignoring 1 extra --filename" in result.output

    def test_unknown_algorithm(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)

            result = CliRunner().invoke(
                cli, ["-c", str(_write_config(root)), "compress", str(root), "-a", "nope"]
            )

            assert result.exit_code == 2
            assert "nope" in result.output


class TestConfigCommands:
    """Test config commands."""

    def test_show(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            result = CliRunner().invoke(cli, ["-c", str(_write_config(Path(temp_dir))), "config", "show"])

            assert result.exit_code == 0, result.output
            assert "gzip" in result.output

    def test_init(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            target = root / "out.yaml"

            result = CliRunner().invoke(
                cli, ["-c", str(_write_config(root)), "config", "init", "-o", str(target)]
            )

            assert result.exit_code == 0, result.output
            assert "min" in target.read_text()
