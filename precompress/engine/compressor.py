"""Staged compression of build output assets."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Union

from ..assets.registry import AssetRegistry
from ..assets.sources import RawSource
from ..codecs.registry import AlgorithmConfig, resolve_algorithms
from ..codecs.runner import CodecRunner, accept_ratio
from ..config import CompressionOptions, PrecompressConfig
from ..errors import AssetFailure, FilenameFailure
from ..util.logging import get_logger
from .cache import CacheEntry, CompressionCache, DiskCacheStore, MemoryCacheStore
from .emitter import Emitter
from .naming import resolve_template, split_path, substitute_tokens
from .rules import RuleEngine
from .selector import Candidate, CandidateSelector

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class EmittedAsset:
    """A compressed asset written by a stage."""

    original: str
    name: str
    stage: int
    original_size: int
    compressed_size: int
    cached: bool = False

    @property
    def ratio(self) -> float:
        return self.compressed_size / self.original_size if self.original_size else 0.0


@dataclass
class RejectedAsset:
    """A result that did not pass the ratio gate."""

    original: str
    stage: int
    original_size: int
    compressed_size: int


@dataclass
class CompressionReport:
    """Outcome of one compression run."""

    emitted: List[EmittedAsset] = field(default_factory=list)
    rejected: List[RejectedAsset] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    errors: List[AssetFailure] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0
    codec_invocations: int = 0

    def add_emitted(self, emitted: EmittedAsset) -> None:
        self.emitted.append(emitted)

    def add_rejected(self, rejected: RejectedAsset) -> None:
        self.rejected.append(rejected)

    def add_error(self, error: AssetFailure) -> None:
        self.errors.append(error)

    @property
    def success(self) -> bool:
        return not self.errors


class Compressor:
    """Runs every configured algorithm stage over an asset registry.

    Stages run one after another. Within a stage every candidate is an
    independent task and the stage ends when all of them have finished.
    Originals are only deleted or annotated by the last stage, after every
    earlier stage has read them.
    """

    def __init__(
        self,
        options: Union[CompressionOptions, Mapping[str, Any], None] = None,
        cache: Optional[CompressionCache] = None,
        matcher: Optional[Callable[[str], bool]] = None,
        max_workers: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Initialize the compressor.

        Args:
            options: Compression options or a mapping accepted by
                :class:`CompressionOptions`
            cache: Cache scope for results (in-memory if None)
            matcher: Path predicate (built from test/include/exclude if None)
            max_workers: Max codecs running at once (unbounded if None)
            progress_callback: Optional callback (message, current, total)

        Raises:
            pydantic.ValidationError: malformed options
            ConfigError: unknown codec identifier
        """
        if not isinstance(options, CompressionOptions):
            options = CompressionOptions(**(options or {}))

        self.options = options
        self.algorithms: List[AlgorithmConfig] = resolve_algorithms(options)
        self.cache = cache if cache is not None else CompressionCache(MemoryCacheStore())
        self.matcher = matcher if matcher is not None else RuleEngine.from_options(options)
        self.max_workers = max_workers
        self.progress_callback = progress_callback

    @classmethod
    def from_config(cls, config: PrecompressConfig, **kwargs: Any) -> "Compressor":
        """Build a compressor from the tool configuration."""
        if config.cache_enabled:
            cache = CompressionCache(DiskCacheStore(config.cache_dir))
        else:
            cache = CompressionCache(MemoryCacheStore())

        kwargs.setdefault("max_workers", config.max_workers)
        return cls(config.compression, cache=cache, **kwargs)

    def run(self, registry: AssetRegistry) -> CompressionReport:
        """Synchronous wrapper around :meth:`compress`."""
        return asyncio.run(self.compress(registry))

    async def compress(self, registry: AssetRegistry) -> CompressionReport:
        """Compress the assets of ``registry`` in place."""
        report = CompressionReport()
        runner = CodecRunner(self.max_workers)
        emitter = Emitter(registry, self.options.delete_original_assets)
        selector = CandidateSelector(registry, self.cache, self.matcher, self.options.threshold)
        hits, misses = self.cache.hits, self.cache.misses

        for index, algorithm in enumerate(self.algorithms):
            is_last_stage = index == len(self.algorithms) - 1
            candidates = [candidate async for candidate in selector.select(algorithm)]

            logger.info(
                f"Stage {index + 1}/{len(self.algorithms)} ({algorithm.codec.name}): "
                f"{len(candidates)} candidate(s)"
            )

            progress = _StageProgress(self.progress_callback, algorithm.codec.name, len(candidates))
            await asyncio.gather(
                *(
                    self._process(index, is_last_stage, algorithm, candidate, runner, emitter, report, progress)
                    for candidate in candidates
                )
            )

        report.cache_hits = self.cache.hits - hits
        report.cache_misses = self.cache.misses - misses
        report.codec_invocations = runner.invocations

        logger.info(
            f"Compression finished: {len(report.emitted)} emitted, {len(report.rejected)} rejected, "
            f"{len(report.errors)} failed"
        )
        return report

    async def _process(
        self,
        index: int,
        is_last_stage: bool,
        algorithm: AlgorithmConfig,
        candidate: Candidate,
        runner: CodecRunner,
        emitter: Emitter,
        report: CompressionReport,
        progress: "_StageProgress",
    ) -> None:
        try:
            await self._compress_candidate(index, is_last_stage, algorithm, candidate, runner, emitter, report)
        except AssetFailure as e:
            logger.warning(str(e))
            report.add_error(e)
        finally:
            progress.advance(candidate.name)

    async def _compress_candidate(
        self,
        index: int,
        is_last_stage: bool,
        algorithm: AlgorithmConfig,
        candidate: Candidate,
        runner: CodecRunner,
        emitter: Emitter,
        report: CompressionReport,
    ) -> None:
        entry = candidate.entry
        cached = entry is not None

        if entry is None or not entry.committed:
            if entry is None:
                compressed = await runner.run(algorithm.codec, algorithm.options, candidate.buffer, candidate.name)
            else:
                compressed = entry.compressed

            original_size = candidate.source.size()
            if not accept_ratio(original_size, len(compressed), self.options.min_ratio):
                logger.debug(
                    f"Rejected {candidate.name} [{algorithm.codec.name}]: "
                    f"{len(compressed)}/{original_size} bytes exceeds ratio {self.options.min_ratio}"
                )
                await self.cache.store(candidate.key, CacheEntry(compressed=compressed))
                report.add_rejected(RejectedAsset(candidate.name, index, original_size, len(compressed)))
                return

            entry = CacheEntry(compressed=compressed, source=RawSource(compressed))
            await self.cache.store(candidate.key, entry)

        parts = split_path(candidate.name)
        try:
            template = resolve_template(algorithm.filename, parts)
            new_name = substitute_tokens(template, parts)
        except Exception as e:
            raise FilenameFailure(candidate.name, e) from e

        deleted = emitter.apply(
            stage_index=index,
            is_last_stage=is_last_stage,
            original_name=candidate.name,
            original_info=candidate.info,
            template=template,
            new_name=new_name,
            compressed_source=entry.source,
            relation_name=candidate.relation_name,
        )
        if deleted:
            report.deleted.append(candidate.name)

        report.add_emitted(
            EmittedAsset(
                original=candidate.name,
                name=new_name,
                stage=index,
                original_size=candidate.source.size(),
                compressed_size=entry.source.size(),
                cached=cached,
            )
        )
        logger.info(f"Emitted {new_name} ({entry.source.size()}/{candidate.source.size()} bytes)")


class _StageProgress:
    """Counts finished candidates of a stage for the progress callback."""

    def __init__(self, callback: Optional[ProgressCallback], codec_name: str, total: int) -> None:
        self.callback = callback
        self.codec_name = codec_name
        self.total = total
        self.done = 0

    def advance(self, asset_name: str) -> None:
        self.done += 1
        if self.callback:
            self.callback(f"{self.codec_name}: {asset_name}", self.done, self.total)
