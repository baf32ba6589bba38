"""Derivation of decryption keys for indexes, encrypted files and packages."""

from __future__ import annotations

import hashlib
import struct
from typing import Sequence, Union

BytesLike = Union[bytes, bytearray, memoryview, str]

KEY_LENGTH = 16
KEY_COUNT = 4
_KEY_VERSION = struct.pack("<I", 2)


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _normalize_collection(key_collection) -> list[bytes]:
    if isinstance(key_collection, (bytes, bytearray, memoryview)):
        flat = bytes(key_collection)
        if len(flat) != KEY_LENGTH * KEY_COUNT:
            raise ValueError(
                f"a flat key collection must be {KEY_LENGTH * KEY_COUNT} bytes long"
            )
        return [flat[i : i + KEY_LENGTH] for i in range(0, len(flat), KEY_LENGTH)]
    keys = [bytes(k) for k in key_collection]
    if len(keys) != KEY_COUNT:
        raise ValueError(f"the key collection must hold {KEY_COUNT} keys")
    if any(len(k) != KEY_LENGTH for k in keys):
        raise ValueError(f"every key must be {KEY_LENGTH} bytes long")
    return keys


def generate_pkg_index_key(
    key_index: int, pkg_name: BytesLike, key_collection: Sequence[bytes] | bytes
) -> bytes:
    """Derive the 16-byte key for an index or encrypted file.

    ``key_index // 2`` selects the collection key; an odd index hashes the key
    before the name, an even one after it.
    """
    keys = _normalize_collection(key_collection)
    if key_index < 0 or key_index // 2 >= len(keys):
        raise ValueError(f"key index {key_index} is out of range")
    key = keys[key_index // 2]
    name = _as_bytes(pkg_name)

    digest = hashlib.md5(_KEY_VERSION, usedforsecurity=False)
    if key_index % 2:
        digest.update(key)
        digest.update(name)
    else:
        digest.update(name)
        digest.update(key)
    return digest.digest()


def generate_pkg_file_key(pkg_name: BytesLike, key: BytesLike = b"") -> str:
    """Return the lower-case hex MD5 of ``key`` followed by ``pkg_name``."""
    name = _as_bytes(pkg_name)
    if not name:
        raise ValueError("the pkg name cannot be empty")
    digest = hashlib.md5(_as_bytes(key), usedforsecurity=False)
    digest.update(name)
    return digest.hexdigest()