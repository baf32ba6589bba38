"""LZMA decoding for data carrying a Source-engine or a ZIP-style header."""

from __future__ import annotations

import enum
import lzma
import struct

LZMA_ID = b"LZMA"
LZMA_PROPS_SIZE = 5

# id, actual (uncompressed) size, compressed size, properties
_HEADER = struct.Struct("<4sII5s")
HEADER_SIZE = _HEADER.size

_ZIP_PREFIX = struct.Struct("<2sH")
_MAX_PROPERTIES_BYTE = 9 * 5 * 5


class LzmaError(ValueError):
    """Raised when LZMA data cannot be decoded."""


class _HeaderParse(enum.Enum):
    OK = enum.auto()
    FAIL = enum.auto()
    NEED_MORE_BYTES = enum.auto()


def _properties_valid(properties: bytes) -> bool:
    return len(properties) == LZMA_PROPS_SIZE and properties[0] < _MAX_PROPERTIES_BYTE


def _alone_header(properties: bytes, actual_size: int) -> bytes:
    return bytes(properties) + struct.pack("<Q", actual_size)


def is_compressed(data) -> bool:
    """Return True if ``data`` starts with the LZMA header id."""
    return bytes(data[:4]) == LZMA_ID


def get_actual_size(data) -> int:
    """Return the uncompressed size stored in the header, or 0 if not LZMA data."""
    if not is_compressed(data) or len(data) < HEADER_SIZE:
        return 0
    return _HEADER.unpack_from(data)[1]


def uncompress(data) -> bytes:
    """Decompress a buffer that starts with a Source-engine LZMA header."""
    if not is_compressed(data):
        raise LzmaError("the data is not LZMA compressed")
    if len(data) < HEADER_SIZE:
        raise LzmaError("the LZMA header is truncated")

    _, actual_size, lzma_size, properties = _HEADER.unpack_from(data)
    if not _properties_valid(properties):
        raise LzmaError("invalid LZMA properties")

    payload = bytes(data[HEADER_SIZE : HEADER_SIZE + lzma_size])
    decoder = lzma.LZMADecompressor(format=lzma.FORMAT_ALONE)
    try:
        output = decoder.decompress(_alone_header(properties, actual_size) + payload)
    except lzma.LZMAError as exc:
        raise LzmaError(f"failed to decode LZMA data: {exc}") from exc

    if len(output) != actual_size:
        raise LzmaError(
            f"decoded {len(output)} bytes but the header announces {actual_size}"
        )
    return output


class LzmaStream:
    """Incremental decoder for an LZMA stream fed in pieces.

    Streams with a Source-engine header need no set-up; ZIP-embedded streams
    must be announced with :meth:`init_zip_header` first.
    """

    def __init__(self):
        self._decoder: lzma.LZMADecompressor | None = None
        self._pending = b""
        self._actual_size = 0
        self._actual_bytes_read = 0
        self._compressed_size = 0
        self._compressed_bytes_read = 0
        self._parsed_header = False
        self._zip_style_header = False

    def init_zip_header(self, compressed_size: int, original_size: int) -> None:
        """Expect a ZIP-style header and take the sizes from the ZIP entry."""
        if self._parsed_header or self._zip_style_header:
            raise LzmaError("the stream header was already initialised")
        self._compressed_size = compressed_size
        self._actual_size = original_size
        self._zip_style_header = True

    def expected_bytes_remaining(self) -> int | None:
        """Uncompressed bytes still to come, or None while that is unknown."""
        if not self._parsed_header and not self._zip_style_header:
            return None
        return self._actual_size - self._actual_bytes_read

    def read(self, data, max_output: int | None = None) -> tuple[int, bytes]:
        """Feed compressed bytes and return ``(bytes_consumed, output)``.

        Returns ``(0, b"")`` while more bytes are needed to read the header.
        Raises :class:`LzmaError` on an invalid header or corrupt data.
        """
        data = bytes(data)
        consumed = 0
        started_with_header = self._parsed_header

        if not self._parsed_header:
            result, header_size = self._try_parse_header(data)
            if result is _HeaderParse.NEED_MORE_BYTES:
                return 0, b""
            if result is not _HeaderParse.OK:
                raise LzmaError("invalid LZMA stream header")
            consumed += header_size
            data = data[header_size:]

        input_remaining = self._compressed_size - min(
            self._compressed_bytes_read + consumed, self._compressed_size
        )
        output_remaining = self._actual_size - self._actual_bytes_read
        chunk = data[:input_remaining]
        limit = output_remaining if max_output is None else min(max_output, output_remaining)

        if self._decoder.eof:
            chunk = b""
            output = b""
        else:
            try:
                output = self._decoder.decompress(self._pending + chunk, max(limit, 0))
            except lzma.LZMAError as exc:
                if not started_with_header:
                    self._free_decoder()
                    self._parsed_header = False
                raise LzmaError(f"failed to decode LZMA data: {exc}") from exc
            self._pending = b""

        consumed += len(chunk)
        self._compressed_bytes_read += consumed
        self._actual_bytes_read += len(output)
        return consumed, output

    def _free_decoder(self) -> None:
        self._decoder = None
        self._pending = b""

    def _create_decoder(self, properties: bytes) -> bool:
        self._free_decoder()
        if not _properties_valid(properties):
            return False
        self._decoder = lzma.LZMADecompressor(format=lzma.FORMAT_ALONE)
        self._pending = _alone_header(properties, self._actual_size)
        return True

    def _try_parse_header(self, data: bytes) -> tuple[_HeaderParse, int]:
        if self._parsed_header:
            return _HeaderParse.FAIL, 0

        if self._zip_style_header:
            # ZIP spec 5.8.8: version (2 bytes), properties size (2 bytes), properties
            if len(data) < _ZIP_PREFIX.size:
                return _HeaderParse.NEED_MORE_BYTES, 0
            _, properties_size = _ZIP_PREFIX.unpack_from(data)
            if properties_size != LZMA_PROPS_SIZE:
                return _HeaderParse.FAIL, _ZIP_PREFIX.size
            end = _ZIP_PREFIX.size + properties_size
            if len(data) < end:
                return _HeaderParse.NEED_MORE_BYTES, 0
            if not self._create_decoder(data[_ZIP_PREFIX.size : end]):
                return _HeaderParse.FAIL, _ZIP_PREFIX.size
            consumed = end
        else:
            if len(data) < HEADER_SIZE:
                return _HeaderParse.NEED_MORE_BYTES, 0
            self._actual_size = get_actual_size(data)
            if not self._actual_size:
                return _HeaderParse.FAIL, 0
            _, _, lzma_size, properties = _HEADER.unpack_from(data)
            if not self._create_decoder(properties):
                return _HeaderParse.FAIL, 0
            self._compressed_size = lzma_size + HEADER_SIZE
            consumed = HEADER_SIZE

        self._parsed_header = True
        return _HeaderParse.OK, consumed