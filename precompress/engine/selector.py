"""Selection of the assets a compression stage works on."""

from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from ..assets.registry import AssetInfo, AssetRegistry
from ..assets.sources import RawSource
from ..codecs.registry import AlgorithmConfig
from ..util.logging import get_logger
from .cache import CacheEntry, CacheKey, CompressionCache, LazyHashedEtag

logger = get_logger(__name__)


@dataclass
class Candidate:
    """An asset selected for compression in the current stage."""

    name: str
    source: RawSource
    info: AssetInfo
    key: CacheKey
    relation_name: str
    entry: Optional[CacheEntry] = None

    @property
    def buffer(self) -> bytes:
        return self.source.buffer()


class CandidateSelector:
    """Yields the assets eligible for one algorithm stage.

    An asset is skipped when it is already compressed, fails the path
    matcher, already carries the stage's relation, or is smaller than
    ``threshold`` without a committed cache entry to fall back on.
    """

    def __init__(
        self,
        registry: AssetRegistry,
        cache: CompressionCache,
        matcher: Callable[[str], bool],
        threshold: int = 0,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.matcher = matcher
        self.threshold = threshold

    async def select(self, algorithm: AlgorithmConfig) -> AsyncIterator[Candidate]:
        relation_name = algorithm.relation_name

        for name in self.registry.names():
            asset = self.registry.get(name)
            if asset is None:
                continue

            if asset.info.compressed:
                continue

            if not self.matcher(name):
                continue

            if asset.info.related.get(relation_name):
                logger.debug(f"Skipping {name}: already related as '{relation_name}'")
                continue

            key = CacheKey(
                asset_name=name,
                codec_identity=algorithm.codec.identity,
                codec_options=algorithm.options,
                etag=LazyHashedEtag(asset.source),
            )
            entry = await self.cache.lookup(key)

            # Committed results are reused without looking at the original size
            if (entry is None or not entry.committed) and asset.source.size() < self.threshold:
                logger.debug(f"Skipping {name}: {asset.source.size()} bytes is below threshold")
                continue

            yield Candidate(
                name=name,
                source=asset.source,
                info=asset.info,
                key=key,
                relation_name=relation_name,
                entry=entry,
            )
