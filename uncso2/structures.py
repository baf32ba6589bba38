"""Binary layouts of the headers found in indexes, packages and encrypted files."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

PATH_LENGTH = 260 + 1


def _unpack(layout: struct.Struct, data, offset: int, what: str) -> tuple:
    if offset < 0 or len(data) - offset < layout.size:
        raise ValueError(
            f"{what} needs {layout.size} bytes at offset {offset}, "
            f"but only {max(len(data) - offset, 0)} are available"
        )
    return layout.unpack_from(data, offset)


def _c_string(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass(frozen=True)
class PkgIndexHeader:
    """Header at the start of a package index file."""

    version: int
    cipher: int
    key: int
    file_size: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<HBBI")
    SIZE: ClassVar[int] = _LAYOUT.size

    @classmethod
    def parse(cls, data, offset: int = 0) -> "PkgIndexHeader":
        """Read the header from ``data`` at ``offset``."""
        return cls(*_unpack(cls._LAYOUT, data, offset, "the index header"))


@dataclass(frozen=True)
class PkgHeader:
    """Package header, following the unencrypted MD5 hash."""

    directory_path: str
    unknown_val: int
    entries: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<{PATH_LENGTH}sII3x")
    SIZE: ClassVar[int] = _LAYOUT.size

    @classmethod
    def parse(cls, data, offset: int = 0) -> "PkgHeader":
        """Read the header from ``data`` at ``offset``."""
        path, unknown, entries = _unpack(cls._LAYOUT, data, offset, "the pkg header")
        return cls(_c_string(path), unknown, entries)


@dataclass(frozen=True)
class PkgHeaderTfo:
    """Package header of the Titanfall Online flavour."""

    unknown_val: int
    entries: int
    unknown_val2: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<III4x")
    SIZE: ClassVar[int] = _LAYOUT.size

    @classmethod
    def parse(cls, data, offset: int = 0) -> "PkgHeaderTfo":
        """Read the header from ``data`` at ``offset``."""
        return cls(*_unpack(cls._LAYOUT, data, offset, "the TFO pkg header"))


@dataclass(frozen=True)
class PkgEntryHeader:
    """Description of one file stored in a package."""

    file_path: str
    offset: int
    encrypted_size: int
    decrypted_size: int
    unknown: int
    is_encrypted: bool

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct(f"<{PATH_LENGTH}sIIIBB13x")
    SIZE: ClassVar[int] = _LAYOUT.size

    @classmethod
    def parse(cls, data, offset: int = 0) -> "PkgEntryHeader":
        """Read the entry from ``data`` at ``offset``."""
        path, file_offset, enc_size, dec_size, unknown, encrypted = _unpack(
            cls._LAYOUT, data, offset, "the pkg entry header"
        )
        return cls(_c_string(path), file_offset, enc_size, dec_size, unknown, bool(encrypted))


@dataclass(frozen=True)
class EncryptedFileHeader:
    """Header at the start of an encrypted (.e*) file."""

    checksum: bytes
    version: int
    cipher: int
    flag: int
    file_size: int

    _LAYOUT: ClassVar[struct.Struct] = struct.Struct("<10sHBBI")
    SIZE: ClassVar[int] = _LAYOUT.size

    @classmethod
    def parse(cls, data, offset: int = 0) -> "EncryptedFileHeader":
        """Read the header from ``data`` at ``offset``."""
        return cls(*_unpack(cls._LAYOUT, data, offset, "the encrypted file header"))