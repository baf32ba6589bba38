"""Block ciphers in CBC mode used to decrypt package and index data."""

from __future__ import annotations

import enum
from typing import Union

from Crypto.Cipher import AES, DES, Blowfish
from Crypto.Util.Padding import unpad

BytesLike = Union[bytes, bytearray, memoryview, str]

NULL_IV = bytes(16)


class CipherKind(enum.IntEnum):
    """Cipher identifiers as stored in index and encrypted-file headers."""

    DES = 1
    AES = 2
    BLOWFISH = 3


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class CbcCipher:
    """Base class for a CBC-mode decryptor with optional PKCS#7 padding."""

    block_size = 16
    _algorithm = None

    def __init__(self, key: BytesLike, iv: BytesLike = b"", padding: bool = True):
        if self._algorithm is None:
            raise TypeError("CbcCipher must be subclassed with a concrete algorithm")
        self.key = _as_bytes(key)
        iv_bytes = _as_bytes(iv)
        self.iv = iv_bytes if iv_bytes else NULL_IV
        self.padding = bool(padding)
        if len(self.iv) < self.block_size:
            raise ValueError(
                f"IV must be at least {self.block_size} bytes, got {len(self.iv)}"
            )
        # Fail early on an unusable key.
        self._new()

    def _cipher_key(self) -> bytes:
        return self.key

    def _new(self):
        return self._algorithm.new(
            self._cipher_key(),
            self._algorithm.MODE_CBC,
            iv=self.iv[: self.block_size],
        )

    def decrypt(self, data: BytesLike) -> bytes:
        """Decrypt ``data`` and return the plaintext, padding removed if enabled."""
        payload = _as_bytes(data)
        size = self.block_size
        if len(payload) % size:
            raise ValueError(
                f"data length {len(payload)} is not a multiple of the block size {size}"
            )
        if self.padding and not payload:
            raise ValueError("padded ciphertext cannot be empty")
        plain = self._new().decrypt(payload)
        if self.padding:
            plain = unpad(plain, size, style="pkcs7")
        return plain

    def decrypt_in_place(self, buffer, offset: int = 0, length: int | None = None) -> int:
        """Decrypt a region of a mutable buffer in place.

        The plaintext overwrites the start of the region; bytes beyond it are
        left untouched. Returns the number of plaintext bytes written.
        """
        view = memoryview(buffer)
        if view.readonly:
            raise TypeError("buffer must be writable")
        if length is None:
            length = len(view) - offset
        if offset < 0 or length < 0 or offset + length > len(view):
            raise ValueError("region lies outside the buffer")
        plain = self.decrypt(view[offset : offset + length])
        view[offset : offset + len(plain)] = plain
        return len(plain)


class AesCipher(CbcCipher):
    """AES in CBC mode."""

    block_size = 16
    _algorithm = AES


class DesCipher(CbcCipher):
    """DES in CBC mode; only the first half of the given key is used."""

    block_size = 8
    _algorithm = DES

    def _cipher_key(self) -> bytes:
        return self.key[: len(self.key) // 2]


class BlowfishCipher(CbcCipher):
    """Blowfish in CBC mode."""

    block_size = 8
    _algorithm = Blowfish


_CIPHERS = {
    CipherKind.DES: DesCipher,
    CipherKind.AES: AesCipher,
    CipherKind.BLOWFISH: BlowfishCipher,
}


def create_index_cipher(
    kind: int, key: BytesLike, iv: BytesLike = b"", padding: bool = True
) -> CbcCipher:
    """Build the cipher identified by ``kind`` with the given key and IV."""
    try:
        cipher_cls = _CIPHERS[CipherKind(kind)]
    except ValueError:
        raise ValueError(f"invalid cipher used: {kind!r}") from None
    return cipher_cls(key, iv, padding)