"""Engine module initialization."""

from .cache import (
    CacheEntry,
    CacheKey,
    CacheStore,
    CompressionCache,
    DiskCacheStore,
    LazyHashedEtag,
    MemoryCacheStore,
)
from .compressor import CompressionReport, Compressor, EmittedAsset, RejectedAsset
from .emitter import KEEP_SOURCE_MAP, Emitter
from .naming import PathParts, render_filename, split_path
from .rules import RuleEngine
from .selector import Candidate, CandidateSelector

__all__ = [
    # cache
    "CacheEntry",
    "CacheKey",
    "CacheStore",
    "CompressionCache",
    "DiskCacheStore",
    "LazyHashedEtag",
    "MemoryCacheStore",
    # compressor
    "CompressionReport",
    "Compressor",
    "EmittedAsset",
    "RejectedAsset",
    # emitter
    "KEEP_SOURCE_MAP",
    "Emitter",
    # naming
    "PathParts",
    "render_filename",
    "split_path",
    # rules
    "RuleEngine",
    # selector
    "Candidate",
    "CandidateSelector",
]
