"""Decryption and parsing of package (.pkg) files."""

from __future__ import annotations

from .ciphers import AesCipher
from .keyhashes import generate_pkg_file_key
from .pkgentry import PkgEntry
from .pkgoptions import PkgFileOptions
from .structures import PkgEntryHeader, PkgHeader, PkgHeaderTfo

PKG_HASHED_ENTRY_KEY_LEN = 16
PKG_HEADER_SKIP_HASH_OFFSET = 33


def _writable_view(data) -> memoryview:
    if data is None:
        return memoryview(bytearray())
    view = memoryview(data)
    if view.readonly:
        view = memoryview(bytearray(view))
    return view


def _c_string(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


class PkgFile:
    """A package file: decrypts its header and reads its file entries.

    A writable buffer (such as a ``bytearray``) is decrypted in place;
    read-only data is copied first.
    """

    def __init__(
        self,
        filename: str,
        data,
        entry_key: str = "",
        data_key: str = "",
        options: PkgFileOptions | None = None,
    ):
        self.filename = filename
        self.data_key = data_key
        self.md5_hash = ""
        self.tfo_pkg = options.tfo_pkg if options is not None else False
        self._data = _writable_view(data)
        self._entries: list[PkgEntry] = []
        self._parsed = False
        self._hashed_entry_key = ""

        if not self.filename:
            raise ValueError("the file name argument cannot be empty")
        if len(self._data) < self._header_type.SIZE:
            raise ValueError("the PKG file does not have a header")

        self.set_entry_key(entry_key)

    @staticmethod
    def header_size(tfo_pkg: bool) -> int:
        """Size of a package header, including the leading hash."""
        header = PkgHeaderTfo if tfo_pkg else PkgHeader
        return PKG_HEADER_SKIP_HASH_OFFSET + header.SIZE

    @property
    def _header_type(self):
        return PkgHeaderTfo if self.tfo_pkg else PkgHeader

    def _header(self):
        return self._header_type.parse(self._data, PKG_HEADER_SKIP_HASH_OFFSET)

    def _is_header_decrypted(self) -> bool:
        return self._header().unknown_val == 0

    def _cipher(self) -> AesCipher:
        return AesCipher(self._hashed_entry_key, padding=False)

    def set_entry_key(self, key: str) -> None:
        """Set the key that protects the header and entry table."""
        hashed = generate_pkg_file_key(self.filename, key)
        self._hashed_entry_key = hashed[:PKG_HASHED_ENTRY_KEY_LEN]

    def set_data_key(self, key: str) -> None:
        """Set the key that protects the entries' data."""
        self.data_key = key

    def set_data_buffer(self, data) -> None:
        """Use a new data buffer, for this package and its parsed entries."""
        self._data = _writable_view(data)
        for entry in self._entries:
            entry.set_data_buffer(self._data)

    def release_data_buffer(self) -> None:
        """Forget this package's data buffer."""
        self._data = memoryview(bytearray())

    def full_header_size(self) -> int:
        """Size of the header plus the entry table; the header must be decrypted."""
        if not self._is_header_decrypted():
            raise RuntimeError(
                "the header is encrypted, could not fetch full header size"
            )
        header_type = self._header_type
        if len(self._data) < header_type.SIZE:
            raise ValueError("the file data is smaller than the PKG header structure")
        header = self._header()
        return (
            PKG_HEADER_SKIP_HASH_OFFSET
            + header_type.SIZE
            + header.entries * PkgEntryHeader.SIZE
        )

    def decrypt_header(self) -> bool:
        """Decrypt the header in place.

        Returns True if the header is (or already was) decrypted, False if the
        entry key did not decrypt it.
        """
        if len(self._data) == 0:
            raise RuntimeError("the file data provided is empty")
        if not self.data_key:
            raise RuntimeError("the data key provided is empty")
        if not self._hashed_entry_key:
            raise RuntimeError("the entry key provided is empty")

        if self._is_header_decrypted():
            return True

        self._cipher().decrypt_in_place(
            self._data, PKG_HEADER_SKIP_HASH_OFFSET, self._header_type.SIZE
        )
        return self._is_header_decrypted()

    def parse(self) -> None:
        """Decrypt the entry table and read the file entries."""
        if self._parsed:
            return
        if len(self._data) == 0:
            raise RuntimeError("the file data provided is empty")
        if not self._is_header_decrypted():
            raise RuntimeError("the header is encrypted, could not parse the PKG file")

        self.md5_hash = _c_string(bytes(self._data[:PKG_HEADER_SKIP_HASH_OFFSET]))

        header_type = self._header_type
        header = self._header()
        table_start = PKG_HEADER_SKIP_HASH_OFFSET + header_type.SIZE
        data_start = table_start + header.entries * PkgEntryHeader.SIZE
        cipher = self._cipher()

        entries = []
        for index in range(header.entries):
            position = table_start + index * PkgEntryHeader.SIZE
            if position + PkgEntryHeader.SIZE > len(self._data):
                raise ValueError("the PKG's data is too small for its entry table")
            cipher.decrypt_in_place(self._data, position, PkgEntryHeader.SIZE)
            raw = PkgEntryHeader.parse(self._data, position)
            entries.append(
                PkgEntry(
                    raw.file_path,
                    data_start + raw.offset,
                    raw.encrypted_size,
                    raw.decrypted_size,
                    raw.is_encrypted,
                    self._data,
                    self.data_key,
                )
            )

        self._entries.extend(entries)
        self._parsed = True

    def entries(self) -> list[PkgEntry]:
        """The parsed file entries."""
        return self._entries