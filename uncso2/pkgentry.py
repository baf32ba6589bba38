"""File entries stored inside package files."""

from __future__ import annotations

import posixpath

from .ciphers import AesCipher
from .keyhashes import generate_pkg_file_key

PKG_ENTRY_KEY_LEN = 16
PKG_DATA_BLOCK_SIZE = 0x10000
_BLOCK = 16


def make_unix_separated(path: str) -> str:
    """Return ``path`` rooted at '/' with every backslash turned into '/'."""
    return "/" + path.replace("\\", "/")


def round_to_block(num: int) -> int:
    """Round ``num`` up to the next multiple of the 16-byte cipher block."""
    remainder = num % _BLOCK
    return num if remainder == 0 else num + _BLOCK - remainder


class PkgEntry:
    """One file held in a package, able to return its decrypted contents."""

    def __init__(
        self,
        file_path: str,
        pkg_file_offset: int,
        encrypted_size: int,
        decrypted_size: int,
        is_encrypted: bool,
        file_data=None,
        pkg_key="",
    ):
        self.file_path = make_unix_separated(file_path)
        self.pkg_file_offset = pkg_file_offset
        self.encrypted_size = encrypted_size
        self.decrypted_size = decrypted_size
        self.is_encrypted = bool(is_encrypted)
        self._data = memoryview(b"")
        self.set_data_buffer(file_data)
        self._hashed_key = ""

        if self.is_encrypted:
            if decrypted_size > encrypted_size:
                raise ValueError(
                    "the decrypted size is bigger than the encrypted size"
                )
            name = posixpath.basename(self.file_path)
            self._hashed_key = generate_pkg_file_key(name, pkg_key)[:PKG_ENTRY_KEY_LEN]

    def __repr__(self) -> str:
        return (
            f"PkgEntry(file_path={self.file_path!r}, offset={self.pkg_file_offset}, "
            f"encrypted_size={self.encrypted_size}, "
            f"decrypted_size={self.decrypted_size}, encrypted={self.is_encrypted})"
        )

    def set_data_buffer(self, data) -> None:
        """Use ``data`` (the whole package's contents) as the entry's source."""
        self._data = memoryview(b"") if data is None else memoryview(data)

    def release_data_buffer(self) -> None:
        """Forget the package data; decrypting then fails until a new buffer is set."""
        self._data = memoryview(b"")

    def decrypt_file(self, bytes_to_decrypt: int = 0) -> bytes:
        """Return the entry's contents, decrypted if needed.

        With ``bytes_to_decrypt`` of zero the whole file is returned; otherwise
        that many bytes, rounded up to the cipher block size.
        """
        if len(self._data) == 0:
            raise ValueError("the entry's file data is empty")

        decrypt_all = bytes_to_decrypt == 0
        aligned = 0 if decrypt_all else round_to_block(bytes_to_decrypt)
        required = self.encrypted_size if decrypt_all else aligned

        if self.pkg_file_offset + required > len(self._data):
            raise RuntimeError(
                "the file in this entry cannot be larger than the pkg file"
            )

        if self.is_encrypted:
            return self._decrypt_encrypted(aligned)
        return self._read_plain(aligned)

    def _decrypt_encrypted(self, aligned: int) -> bytes:
        if self.encrypted_size == 0:
            return b""

        enc_size = self.encrypted_size if aligned == 0 else aligned
        dec_size = self.decrypted_size if aligned == 0 else aligned
        start = self.pkg_file_offset
        region = self._data[start : start + enc_size]

        cipher = AesCipher(self._hashed_key, padding=False)
        # Every block of the package data is encrypted on its own.
        plain = b"".join(
            cipher.decrypt(region[pos : pos + PKG_DATA_BLOCK_SIZE])
            for pos in range(0, enc_size, PKG_DATA_BLOCK_SIZE)
        )
        return plain[:dec_size]

    def _read_plain(self, aligned: int) -> bytes:
        size = self.decrypted_size if aligned == 0 else aligned
        start = self.pkg_file_offset
        return bytes(self._data[start : start + size])