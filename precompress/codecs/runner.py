"""Codec invocation and the compression ratio gate."""

import asyncio
from typing import Any, Mapping, Optional

from ..assets.sources import RawSource
from ..errors import CodecFailure
from ..util.logging import get_logger
from .registry import Codec

logger = get_logger(__name__)


def to_bytes(result: Any) -> bytes:
    """Normalize a codec result into bytes."""
    if isinstance(result, bytes):
        return result
    if isinstance(result, (bytearray, memoryview)):
        return bytes(result)
    if isinstance(result, str):
        return result.encode("utf-8")
    if isinstance(result, RawSource):
        return result.buffer()
    raise TypeError(f"Codec returned {type(result).__name__}, expected a bytes-like object")


def accept_ratio(original_len: int, compressed_len: int, min_ratio: float) -> bool:
    """Decide whether a compressed result is worth keeping.

    Rejected when ``compressed_len / original_len`` exceeds ``min_ratio``.
    An empty original never gains from compression and is always rejected.
    """
    if original_len <= 0:
        return False
    return compressed_len / original_len <= min_ratio


class CodecRunner:
    """Runs codecs on asset content, at most ``max_workers`` at a time.

    Create one per event loop; the concurrency limit is an asyncio semaphore.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self._semaphore = asyncio.Semaphore(max_workers) if max_workers else None
        self.invocations = 0

    async def run(
        self,
        codec: Codec,
        options: Mapping[str, Any],
        data: bytes,
        asset_name: str = "",
    ) -> bytes:
        """Compress ``data`` with ``codec``.

        Raises:
            CodecFailure: the codec raised or returned something that is not
                bytes-like. Never retried.
        """
        self.invocations += 1
        logger.debug(f"Running codec {codec.name} on {asset_name} ({len(data)} bytes)")

        try:
            if self._semaphore is None:
                result = await codec.invoke(data, dict(options))
            else:
                async with self._semaphore:
                    result = await codec.invoke(data, dict(options))
            return to_bytes(result)
        except Exception as e:
            raise CodecFailure(asset_name, codec.identity, e) from e
