"""Command Line Interface for precompress."""

import sys
from pathlib import Path
from typing import List, Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from .assets import load_directory, write_directory
from .codecs import available_codecs
from .config import DEFAULT_CONFIG_PATH, PrecompressConfig, load_config, save_config
from .engine import Compressor, CompressionReport
from .errors import PrecompressError
from .util import format_size, get_logger, setup_logging

console = Console()


def setup_cli_logging(verbose: bool = False, level: str = "INFO"):
    """Setup logging for CLI."""
    setup_logging(level="DEBUG" if verbose else level, console=Console(stderr=True))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path]):
    """precompress - post-build asset compression."""
    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = load_config(config)
        ctx.obj["config_path"] = config or DEFAULT_CONFIG_PATH
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(2)

    setup_cli_logging(verbose, ctx.obj["config"].log_level)


@cli.command("compress")
@click.argument("output_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--algorithm", "-a", "algorithms", multiple=True,
              help=f"Codec per stage, in order ({', '.join(available_codecs())})")
@click.option("--filename", "-f", "filenames", multiple=True, help="Output name pattern per stage")
@click.option("--threshold", "-t", type=int, help="Minimum asset size in bytes")
@click.option("--min-ratio", "-r", type=float, help="Maximum compressed/original ratio to keep")
@click.option("--delete-original", is_flag=True, help="Delete originals after the last stage")
@click.option("--keep-source-map", is_flag=True, help="Delete originals but keep their source maps")
@click.option("--include", multiple=True, help="Only compress assets matching these prefixes")
@click.option("--exclude", multiple=True, help="Skip assets matching these prefixes")
@click.option("--no-cache", is_flag=True, help="Do not use the persistent cache")
@click.pass_context
def compress(ctx, output_dir: Path, algorithms: List[str], filenames: List[str],
             threshold: Optional[int], min_ratio: Optional[float], delete_original: bool,
             keep_source_map: bool, include: List[str], exclude: List[str], no_cache: bool):
    """Compress the assets of a build output directory in place."""
    logger = get_logger(__name__)
    config: PrecompressConfig = ctx.obj["config"]

    try:
        config = _apply_overrides(
            config, algorithms, filenames, threshold, min_ratio,
            delete_original, keep_source_map, include, exclude, no_cache,
        )

        registry = load_directory(output_dir)
        logger.info(f"Compressing {len(registry)} assets in {output_dir}")

        with tqdm(desc="Compressing", unit="asset", leave=False) as pbar:
            def on_progress(message: str, current: int, total: int) -> None:
                pbar.total = total
                pbar.n = current
                pbar.set_postfix_str(message)
                pbar.refresh()

            compressor = Compressor.from_config(config, progress_callback=on_progress)
            report = compressor.run(registry)

        counts = write_directory(registry, output_dir)

    except ValidationError as e:
        console.print(f"[red]Invalid options: {e}[/red]")
        sys.exit(2)
    except PrecompressError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(2)

    _print_report(report)
    console.print(f"Wrote {counts['written']} file(s), removed {counts['removed']} file(s)")

    if not report.success:
        sys.exit(1)


def _apply_overrides(config: PrecompressConfig, algorithms, filenames, threshold, min_ratio,
                     delete_original, keep_source_map, include, exclude, no_cache) -> PrecompressConfig:
    """Merge command line options over the loaded configuration."""
    options = config.compression.model_dump(by_alias=False, exclude_none=True)

    if algorithms:
        stages = []
        for i, algorithm in enumerate(algorithms):
            stage = {"algorithm": algorithm}
            if i < len(filenames):
                stage["filename"] = filenames[i]
            elif algorithm == "brotli":
                stage["filename"] = "[path][base].br"
            stages.append(stage)
        options["algorithms"] = stages
    elif filenames and options.get("algorithms"):
        # Stages come from the config file; patterns apply to them in order
        for stage, filename in zip(options["algorithms"], filenames):
            stage["filename"] = filename
        if len(filenames) > len(options["algorithms"]):
            console.print(
                f"[yellow]Ignoring {len(filenames) - len(options['algorithms'])} extra --filename value(s)[/yellow]"
            )
    elif filenames:
        options["filename"] = filenames[0]

    if threshold is not None:
        options["threshold"] = threshold
    if min_ratio is not None:
        options["min_ratio"] = min_ratio
    if keep_source_map:
        options["delete_original_assets"] = "keep-source-map"
    elif delete_original:
        options["delete_original_assets"] = True
    if include:
        options["include"] = list(include)
    if exclude:
        options["exclude"] = list(exclude)

    updated = config.model_copy(update={"compression": type(config.compression)(**options)})
    if no_cache:
        updated.cache_enabled = False
    return updated


def _print_report(report: CompressionReport) -> None:
    """Display the outcome of a compression run."""
    if not report.emitted:
        console.print("[yellow]No assets compressed[/yellow]")
    else:
        table = Table(title="Compressed Assets")
        table.add_column("Asset", style="cyan")
        table.add_column("Original", style="white", justify="right")
        table.add_column("Compressed", style="white", justify="right")
        table.add_column("Ratio", style="green", justify="right")
        table.add_column("Cached", style="white")

        for emitted in sorted(report.emitted, key=lambda e: e.name):
            table.add_row(
                emitted.name,
                format_size(emitted.original_size),
                format_size(emitted.compressed_size),
                f"{emitted.ratio:.2f}",
                "Yes" if emitted.cached else "No",
            )

        console.print(table)

    if report.rejected:
        console.print(f"[yellow]Kept uncompressed (ratio too high): {len(report.rejected)}[/yellow]")

    if report.deleted:
        console.print(f"Deleted originals: {len(report.deleted)}")

    console.print(f"Cache: {report.cache_hits} hit(s), {report.cache_misses} miss(es)")

    for error in report.errors[:5]:  # Show first 5 errors
        console.print(f"[red]{error}[/red]")


@cli.group()
def config():
    """Configuration commands."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Show the effective configuration."""
    cfg: PrecompressConfig = ctx.obj["config"]

    table = Table(title="precompress Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Config file", str(ctx.obj["config_path"]))
    table.add_row("Cache directory", str(cfg.cache_dir))
    table.add_row("Cache enabled", "Yes" if cfg.cache_enabled else "No")
    table.add_row("Log level", cfg.log_level)
    table.add_row("Max workers", str(cfg.max_workers))

    options = cfg.compression
    if options.algorithms:
        stages = ", ".join(str(spec.algorithm) for spec in options.algorithms)
    else:
        stages = str(options.algorithm)
    table.add_row("Algorithms", stages)
    table.add_row("Filename", str(options.filename))
    table.add_row("Threshold", format_size(options.threshold))
    table.add_row("Min ratio", str(options.min_ratio))
    table.add_row("Delete originals", str(options.delete_original_assets))

    console.print(table)


@config.command("init")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Where to write the config file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def config_init(ctx, output: Optional[Path], force: bool):
    """Write the effective configuration to a YAML file."""
    target = output or ctx.obj["config_path"]

    if target.exists() and not force:
        console.print(f"[yellow]Config file already exists: {target} (use --force)[/yellow]")
        return

    save_config(ctx.obj["config"], target)
    console.print(f"[bold green]Configuration written to {target}[/bold green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
