"""Emittable asset sources."""

from typing import Union


class RawSource:
    """Immutable wrapper around the bytes of an asset."""

    __slots__ = ("_buffer",)

    def __init__(self, content: Union[bytes, bytearray, memoryview, str]) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._buffer = bytes(content)

    def buffer(self) -> bytes:
        """Return the source content as bytes."""
        return self._buffer

    def size(self) -> int:
        """Return the content length in bytes."""
        return len(self._buffer)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawSource):
            return NotImplemented
        return self._buffer == other._buffer

    def __hash__(self) -> int:
        return hash(self._buffer)

    def __repr__(self) -> str:
        return f"RawSource(size={len(self._buffer)})"
