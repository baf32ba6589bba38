"""Decryption and parsing of package index files."""

from __future__ import annotations

from .ciphers import create_index_cipher
from .keyhashes import generate_pkg_index_key
from .structures import PkgIndexHeader

SUPPORTED_PKG_VERSION = 2
_NEW_LINE = b"\r\n"


def split_lines(data) -> list[str]:
    """Split text into CRLF-terminated lines; an unterminated tail is dropped."""
    pieces = bytes(data).split(_NEW_LINE)
    return [piece.decode("utf-8", errors="replace") for piece in pieces[:-1]]


class PkgIndex:
    """An index file listing the names of a game's package files."""

    def __init__(self, index_filename: str, data, key_collection=None):
        self.index_filename = index_filename
        self._data = bytes(data)
        self._key_collection = key_collection
        self._filenames: list[str] = []
        self._header_validated = False

    def set_key_collection(self, key_collection) -> None:
        """Set the four 16-byte keys to decrypt with."""
        self._key_collection = key_collection

    def validate_header(self) -> None:
        """Check the header; must be called before :meth:`parse`."""
        if len(self._data) < PkgIndexHeader.SIZE:
            raise ValueError("the index file does not have a header")
        header = PkgIndexHeader.parse(self._data)
        if header.version != SUPPORTED_PKG_VERSION:
            raise ValueError("the index file's header is not supported")
        if len(self._data) != header.file_size + PkgIndexHeader.SIZE:
            raise ValueError(
                "the file size in the header does not match the real index's file size"
            )
        self._header_validated = True

    def parse(self) -> int:
        """Decrypt the index and read its file names.

        Returns the size of the header plus the decrypted data.
        """
        if not self._header_validated:
            raise RuntimeError("the header was not validated")
        if self._key_collection is None:
            raise RuntimeError("no key collection was set")

        header = PkgIndexHeader.parse(self._data)
        key = generate_pkg_index_key(header.key, self.index_filename, self._key_collection)
        cipher = create_index_cipher(header.cipher, key)

        start = PkgIndexHeader.SIZE
        try:
            plain = cipher.decrypt(self._data[start : start + header.file_size])
        except ValueError as exc:
            self._filenames = []
            raise RuntimeError("failed to decrypt the index file") from exc

        filenames = split_lines(plain)
        if not filenames or filenames[0] != self.index_filename:
            self._filenames = []
            raise RuntimeError("failed to decrypt the index file")

        self._filenames = filenames
        return PkgIndexHeader.SIZE + len(plain)

    def filenames(self) -> list[str]:
        """The file names read by :meth:`parse`."""
        return list(self._filenames)