"""Codecs module initialization."""

from .registry import (
    CODEC_TABLE,
    AlgorithmConfig,
    Codec,
    CodecDefinition,
    CustomCodec,
    NamedCodec,
    available_codecs,
    resolve_algorithms,
    resolve_codec,
)
from .runner import CodecRunner, accept_ratio, to_bytes

__all__ = [
    # registry
    "CODEC_TABLE",
    "AlgorithmConfig",
    "Codec",
    "CodecDefinition",
    "CustomCodec",
    "NamedCodec",
    "available_codecs",
    "resolve_algorithms",
    "resolve_codec",
    # runner
    "CodecRunner",
    "accept_ratio",
    "to_bytes",
]
