"""Decompression of LZMA-compressed Valve Texture Files."""

from __future__ import annotations

import struct
from typing import Iterator

from .lzma_decoder import LzmaError, uncompress

SIGNATURE_HIGH_BYTE = ord("C")
SIGNATURE_LOW_WORD = 0x324F  # "O2"

# signature high byte, signature low word, chunk count, original size
_HEADER = struct.Struct("<BHBI")
_CHUNK = struct.Struct("<II")


class LzmaTexture:
    """A texture split into chunks, each stored plain or LZMA-compressed."""

    def __init__(self, data):
        self._data = bytes(data)
        if not self.is_lzma_texture(self._data):
            raise ValueError("the texture's header is invalid")

    @staticmethod
    def is_lzma_texture(data) -> bool:
        """Return True if ``data`` is long enough and carries the texture signature."""
        if len(data) < _HEADER.size:
            return False
        high, low, _, _ = _HEADER.unpack_from(data)
        return high == SIGNATURE_HIGH_BYTE and low == SIGNATURE_LOW_WORD

    @staticmethod
    def header_size() -> int:
        """Size of the fixed part of a compressed texture's header."""
        return _HEADER.size

    def original_size(self) -> int:
        """The size of the texture once decompressed."""
        return _HEADER.unpack_from(self._data)[3]

    def _chunks(self) -> Iterator[tuple[int, bool, int]]:
        count = _HEADER.unpack_from(self._data)[2]
        table_end = _HEADER.size + count * _CHUNK.size
        if table_end > len(self._data):
            raise LzmaError("the texture's chunk table is truncated")
        for entry, plain_size in _CHUNK.iter_unpack(self._data[_HEADER.size : table_end]):
            yield entry >> 1, bool(entry & 1), plain_size

    def decompress(self) -> bytes:
        """Decompress every chunk and return the whole texture."""
        view = memoryview(self._data)
        output = bytearray()
        for offset, compressed, plain_size in self._chunks():
            if offset > len(self._data):
                raise LzmaError("a texture chunk lies outside the data")
            if compressed:
                output += uncompress(view[offset:])
            else:
                if offset + plain_size > len(self._data):
                    raise LzmaError("a texture chunk lies outside the data")
                output += view[offset : offset + plain_size]

        expected = self.original_size()
        if len(output) != expected:
            raise LzmaError(
                f"decompressed {len(output)} bytes but the texture announces {expected}"
            )
        return bytes(output)