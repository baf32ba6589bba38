"""Decryption of files whose extension starts with 'e' (such as .ecsv or .ecfg)."""

from __future__ import annotations

from .ciphers import create_index_cipher
from .keyhashes import generate_pkg_index_key
from .structures import EncryptedFileHeader

ENCRYPTED_FILE_VERSION = 2


class EncryptedFile:
    """An encrypted file, decrypted the same way package indexes are."""

    def __init__(self, file_name: str, data, key_collection):
        self.file_name = file_name
        self._data = bytes(data)
        self._key_collection = key_collection
        if not self._is_header_valid():
            raise ValueError("the file's header is invalid")

    @staticmethod
    def is_encrypted_file(data) -> bool:
        """Return True if ``data`` holds an encrypted file header.

        Only the header is checked, so the header alone is enough.
        """
        if len(data) < EncryptedFileHeader.SIZE:
            return False
        return EncryptedFileHeader.parse(data).version == ENCRYPTED_FILE_VERSION

    @staticmethod
    def header_size() -> int:
        """Size of an encrypted file's header."""
        return EncryptedFileHeader.SIZE

    def _is_header_valid(self) -> bool:
        if len(self._data) < EncryptedFileHeader.SIZE:
            return False
        header = EncryptedFileHeader.parse(self._data)
        return EncryptedFileHeader.SIZE + header.file_size <= len(self._data)

    def decrypt(self) -> bytes:
        """Decrypt the file and return its plaintext."""
        header = EncryptedFileHeader.parse(self._data)
        key = generate_pkg_index_key(header.flag, self.file_name, self._key_collection)
        cipher = create_index_cipher(header.cipher, key)
        start = EncryptedFileHeader.SIZE
        return cipher.decrypt(self._data[start : start + header.file_size])