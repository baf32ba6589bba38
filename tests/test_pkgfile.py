import struct

import pytest
from Crypto.Cipher import AES

from uncso2.keyhashes import generate_pkg_file_key
from uncso2.pkgfile import PkgFile
from uncso2.pkgoptions import PkgFileOptions

PKG_NAME = "0a1b2c3d4e5f60718293a4b5c6d7e8f9.pkg"
ENTRY_KEY = "placeholder"
DATA_KEY = "secret"
HASH = b"0123456789abcdef0123456789abcdef\0"

SMALL = bytes(range(40))
BIG = bytes((i * 7) % 251 for i in range(70000))
PLAIN = b"plain text entry\r\n"

FILES = [
    ("data\\first.bin", SMALL, True),
    ("data\\sub\\big.bin", BIG, True),
    ("readme.txt", PLAIN, False),
]


def _encrypt(key: str, data: bytes) -> bytes:
    return AES.new(key.encode(), AES.MODE_CBC, iv=bytes(16)).encrypt(data)


def _build_pkg(files=FILES, tfo=False, entry_key=ENTRY_KEY, data_key=DATA_KEY):
    hashed = generate_pkg_file_key(PKG_NAME, entry_key)[:16]
    table = b""
    blobs = b""
    for path, content, encrypted in files:
        if encrypted:
            padded = content + bytes(-len(content) % 16)
            key = generate_pkg_file_key(path.replace("\\", "/").rsplit("/", 1)[-1], data_key)[:16]
            blob = b"".join(
                _encrypt(key, padded[pos : pos + 0x10000])
                for pos in range(0, len(padded), 0x10000)
            )
        else:
            blob = content
        raw_entry = struct.pack(
            "<261sIIIBB13x", path.encode(), len(blobs), len(blob), len(content), 0, int(encrypted)
        )
        table += _encrypt(hashed, raw_entry)
        blobs += blob
    if tfo:
        header = struct.pack("<III4x", 0, len(files), 0)
    else:
        header = struct.pack("<261sII3x", b"some\\dir", 0, len(files))
    return bytearray(HASH + _encrypt(hashed, header) + table + blobs)


def _opened(tfo=False):
    options = PkgFileOptions(tfo_pkg=tfo)
    pkg = PkgFile(PKG_NAME, _build_pkg(tfo=tfo), ENTRY_KEY, DATA_KEY, options)
    assert pkg.decrypt_header() is True
    pkg.parse()
    return pkg


def test_header_sizes():
    assert PkgFile.header_size(False) == 305
    assert PkgFile.header_size(True) == 49


@pytest.mark.parametrize("tfo", [False, True])
def test_parse_and_decrypt_entries(tfo):
    pkg = _opened(tfo)
    entries = pkg.entries()
    assert len(entries) == len(FILES)
    assert [e.file_path for e in entries] == [
        "/data/first.bin",
        "/data/sub/big.bin",
        "/readme.txt",
    ]
    assert [e.decrypt_file() for e in entries] == [SMALL, BIG, PLAIN]


def test_md5_hash_and_full_header_size():
    pkg = _opened()
    assert pkg.md5_hash == HASH[:-1].decode()
    assert pkg.full_header_size() == 33 + 272 + 3 * 288


def test_full_header_size_tfo():
    pkg = _opened(tfo=True)
    assert pkg.full_header_size() == 33 + 16 + 3 * 288


@pytest.mark.parametrize("tfo", [False, True])
@pytest.mark.parametrize("wanted,expected", [(16, 16), (23, 32)])
def test_partial_decrypt(tfo, wanted, expected):
    entry = _opened(tfo).entries()[0]
    data = entry.decrypt_file(wanted)
    assert len(data) == expected
    assert data == SMALL[:expected]


def test_decrypt_header_twice_returns_true():
    pkg = _opened()
    assert pkg.decrypt_header() is True


def test_wrong_entry_key_fails_to_decrypt_header():
    pkg = PkgFile(PKG_NAME, _build_pkg(), "token", DATA_KEY)
    assert pkg.decrypt_header() is False
    with pytest.raises(RuntimeError):
        pkg.parse()


def test_encrypted_header_blocks_full_header_size_and_parse():
    pkg = PkgFile(PKG_NAME, _build_pkg(), ENTRY_KEY, DATA_KEY)
    with pytest.raises(RuntimeError):
        pkg.full_header_size()
    with pytest.raises(RuntimeError):
        pkg.parse()


def test_set_entry_key_fixes_decryption():
    pkg = PkgFile(PKG_NAME, _build_pkg(), "token", DATA_KEY)
    pkg.set_entry_key(ENTRY_KEY)
    assert pkg.decrypt_header() is True


def test_empty_data_key_raises():
    pkg = PkgFile(PKG_NAME, _build_pkg(), ENTRY_KEY, "")
    with pytest.raises(RuntimeError):
        pkg.decrypt_header()


def test_set_data_key_used_by_entries():
    pkg = PkgFile(PKG_NAME, _build_pkg(), ENTRY_KEY, "")
    pkg.set_data_key(DATA_KEY)
    assert pkg.decrypt_header() is True
    pkg.parse()
    assert pkg.entries()[0].decrypt_file() == SMALL


def test_empty_filename_raises():
    with pytest.raises(ValueError):
        PkgFile("", _build_pkg(), ENTRY_KEY, DATA_KEY)


def test_too_small_data_raises():
    with pytest.raises(ValueError):
        PkgFile(PKG_NAME, bytearray(100), ENTRY_KEY, DATA_KEY)


def test_writable_buffer_is_decrypted_in_place():
    buffer = _build_pkg()
    pkg = PkgFile(PKG_NAME, buffer, ENTRY_KEY, DATA_KEY)
    pkg.decrypt_header()
    assert bytes(buffer[33:41]) == b"some\\dir"


def test_parse_twice_keeps_entries():
    pkg = _opened()
    pkg.parse()
    assert len(pkg.entries()) == 3


def test_release_data_buffer_blocks_parse():
    pkg = PkgFile(PKG_NAME, _build_pkg(), ENTRY_KEY, DATA_KEY)
    pkg.decrypt_header()
    pkg.release_data_buffer()
    with pytest.raises(RuntimeError):
        pkg.parse()


def test_set_data_buffer_updates_entries():
    pkg = _opened()
    size = len(_build_pkg())
    pkg.set_data_buffer(bytearray(size))
    plain_entry = pkg.entries()[2]
    assert plain_entry.decrypt_file() == bytes(len(PLAIN))


def test_set_data_buffer_too_short_for_entry():
    pkg = _opened()
    pkg.set_data_buffer(bytearray(400))
    with pytest.raises(RuntimeError):
        pkg.entries()[1].decrypt_file()