"""Codec registry and algorithm resolution.

Named codecs are looked up in a static table at construction time; custom
codecs are plain or async callables used as they are. Both are wrapped in a
:class:`Codec` exposing a single asynchronous ``invoke``.
"""

import asyncio
import inspect
import zlib
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping

import brotli

from ..config import DEFAULT_FILENAME, AlgorithmSpec, CompressionOptions, FilenameSpec
from ..errors import ConfigError
from ..util.hashing import calculate_text_hash, serialize_callable
from ..util.logging import get_logger

logger = get_logger(__name__)

BROTLI_MODES = {
    "generic": brotli.MODE_GENERIC,
    "text": brotli.MODE_TEXT,
    "font": brotli.MODE_FONT,
}


def _zlib_compressor(container_bits: Callable[[int], int]) -> Callable[[bytes, Mapping[str, Any]], bytes]:
    def compress(data: bytes, options: Mapping[str, Any]) -> bytes:
        compressor = zlib.compressobj(
            options.get("level", zlib.Z_DEFAULT_COMPRESSION),
            zlib.DEFLATED,
            container_bits(options.get("window_bits", zlib.MAX_WBITS)),
            options.get("mem_level", 8),
            options.get("strategy", zlib.Z_DEFAULT_STRATEGY),
        )
        return compressor.compress(data) + compressor.flush()

    return compress


def _brotli_compress(data: bytes, options: Mapping[str, Any]) -> bytes:
    mode = options.get("mode", "generic")
    return brotli.compress(
        data,
        mode=BROTLI_MODES.get(mode, mode),
        quality=options.get("quality", 11),
        lgwin=options.get("lgwin", 22),
        lgblock=options.get("lgblock", 0),
    )


@dataclass(frozen=True)
class CodecDefinition:
    """Entry of the built-in codec table."""

    name: str
    compress: Callable[[bytes, Mapping[str, Any]], bytes]
    default_options: Mapping[str, Any]
    relation: str


# gzip output from zlib carries a zero mtime, so results are reproducible
CODEC_TABLE: Dict[str, CodecDefinition] = {
    definition.name: definition
    for definition in (
        CodecDefinition(
            "gzip", _zlib_compressor(lambda bits: bits + 16), {"level": zlib.Z_BEST_COMPRESSION}, "gzipped"
        ),
        CodecDefinition(
            "deflate", _zlib_compressor(lambda bits: bits), {"level": zlib.Z_BEST_COMPRESSION}, "deflated"
        ),
        CodecDefinition(
            "deflate_raw", _zlib_compressor(lambda bits: -bits), {"level": zlib.Z_BEST_COMPRESSION}, "deflate_rawed"
        ),
        CodecDefinition("brotli", _brotli_compress, {"quality": 11}, "brotlied"),
    )
}


class Codec:
    """A compression function with a stable identity."""

    name: str
    identity: str

    async def invoke(self, data: bytes, options: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def relation_name(self, filename: FilenameSpec) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class NamedCodec(Codec):
    """Codec resolved from :data:`CODEC_TABLE`."""

    def __init__(self, definition: CodecDefinition) -> None:
        self.definition = definition
        self.name = definition.name
        self.identity = definition.name

    async def invoke(self, data: bytes, options: Mapping[str, Any]) -> bytes:
        return await asyncio.to_thread(self.definition.compress, data, options)

    def relation_name(self, filename: FilenameSpec) -> str:
        return self.definition.relation


class CustomCodec(Codec):
    """Codec backed by a user callable ``(data, options) -> bytes``.

    Async callables are awaited on the event loop; plain ones run in a
    worker thread.
    """

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func
        self.name = getattr(func, "__name__", type(func).__name__)
        self.identity = f"custom-{calculate_text_hash(serialize_callable(func))}"

    async def invoke(self, data: bytes, options: Mapping[str, Any]) -> Any:
        if inspect.iscoroutinefunction(self.func):
            return await self.func(data, options)

        result = await asyncio.to_thread(self.func, data, options)
        if inspect.isawaitable(result):
            result = await result
        return result

    def relation_name(self, filename: FilenameSpec) -> str:
        if callable(filename):
            return f"compression-function-{calculate_text_hash(serialize_callable(filename))}"

        # "[path][base].br?v=1" -> "bred"
        suffix = PurePosixPath(filename.split("?", 1)[0]).suffix
        return f"{suffix[1:]}ed"


@dataclass(frozen=True)
class AlgorithmConfig:
    """A resolved compression stage."""

    codec: Codec
    filename: FilenameSpec
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def relation_name(self) -> str:
        return self.codec.relation_name(self.filename)


def resolve_codec(algorithm: Any) -> Codec:
    """Turn a codec identifier or callable into a :class:`Codec`."""
    if callable(algorithm):
        return CustomCodec(algorithm)

    definition = CODEC_TABLE.get(algorithm)
    if definition is None:
        raise ConfigError(
            f'Algorithm "{algorithm}" is not found; available: {", ".join(sorted(CODEC_TABLE))}'
        )
    return NamedCodec(definition)


def resolve_algorithms(options: CompressionOptions) -> List[AlgorithmConfig]:
    """Normalize user options into the ordered list of compression stages."""
    specs = list(options.algorithms)
    if not specs:
        specs = [
            AlgorithmSpec(
                algorithm=options.algorithm,
                filename=options.filename,
                compression_options=options.compression_options,
            )
        ]

    resolved = []
    for spec in specs:
        codec = resolve_codec(spec.algorithm)
        user_options = dict(spec.compression_options or {})

        if isinstance(codec, NamedCodec):
            codec_options = {**codec.definition.default_options, **user_options}
        else:
            codec_options = user_options

        algorithm = AlgorithmConfig(
            codec=codec,
            filename=spec.filename if spec.filename is not None else DEFAULT_FILENAME,
            options=MappingProxyType(codec_options),
        )
        logger.debug(f"Resolved stage {len(resolved)}: {codec!r} with options {codec_options}")
        resolved.append(algorithm)

    return resolved


def available_codecs() -> List[str]:
    """Names of the built-in codecs."""
    return sorted(CODEC_TABLE)
