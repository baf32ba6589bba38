import struct

import pytest
from Crypto.Cipher import AES, DES, Blowfish
from Crypto.Util.Padding import pad

from uncso2.ciphers import CipherKind
from uncso2.keyhashes import generate_pkg_index_key
from uncso2.pkgindex import PkgIndex, split_lines

INDEX_NAME = "1b87c6b551e518d11114ee21b7645a47.pkg"
CSO2_KEYS = [bytes(range(i * 16, i * 16 + 16)) for i in range(4)]
TFO_KEYS = [bytes((b * 7 + i) & 0xFF for b in range(16)) for i in range(4)]


def _encrypt(kind, key, plain):
    if kind == CipherKind.AES:
        return AES.new(key, AES.MODE_CBC, iv=bytes(16)).encrypt(pad(plain, 16))
    if kind == CipherKind.DES:
        return DES.new(key[:8], DES.MODE_CBC, iv=bytes(8)).encrypt(pad(plain, 8))
    return Blowfish.new(key, Blowfish.MODE_CBC, iv=bytes(8)).encrypt(pad(plain, 8))


def _content(count):
    names = [INDEX_NAME] + [f"{i:032x}.pkg" for i in range(1, count)]
    return "".join(name + "\r\n" for name in names).encode()


def _build(count, keys, kind=CipherKind.AES, key_index=1, name=INDEX_NAME, version=2):
    key = generate_pkg_index_key(key_index, name, keys)
    body = _encrypt(kind, key, _content(count))
    return struct.pack("<HBBI", version, int(kind), key_index, len(body)) + body


def test_split_lines():
    assert split_lines(b"a\r\nbc\r\nd") == ["a", "bc"]
    assert split_lines(b"") == []
    assert split_lines(b"x\r\n\r\n") == ["x", ""]


@pytest.mark.parametrize("count", [2091, 2087, 2045, 1634])
def test_parse_cso2_index(count):
    data = _build(count, CSO2_KEYS)
    index = PkgIndex(INDEX_NAME, data, CSO2_KEYS)
    index.validate_header()
    new_size = index.parse()
    assert len(index.filenames()) == count
    assert index.filenames()[0] == INDEX_NAME
    assert new_size == 8 + len(_content(count))


def test_parse_tfo_index():
    data = _build(1077, TFO_KEYS, key_index=6)
    index = PkgIndex(INDEX_NAME, data, TFO_KEYS)
    index.validate_header()
    index.parse()
    assert len(index.filenames()) == 1077


@pytest.mark.parametrize("kind", list(CipherKind))
def test_parse_with_every_cipher(kind):
    data = _build(12, CSO2_KEYS, kind=kind, key_index=2)
    index = PkgIndex(INDEX_NAME, data, CSO2_KEYS)
    index.validate_header()
    index.parse()
    assert index.filenames()[1:] == [f"{i:032x}.pkg" for i in range(1, 12)]


def test_key_collection_set_later():
    data = _build(5, CSO2_KEYS)
    index = PkgIndex(INDEX_NAME, data)
    index.set_key_collection(CSO2_KEYS)
    index.validate_header()
    index.parse()
    assert len(index.filenames()) == 5


def test_parse_requires_validation():
    index = PkgIndex(INDEX_NAME, _build(3, CSO2_KEYS), CSO2_KEYS)
    with pytest.raises(RuntimeError):
        index.parse()


def test_short_index_is_rejected():
    with pytest.raises(ValueError, match="header"):
        PkgIndex(INDEX_NAME, b"\x02\x00", CSO2_KEYS).validate_header()


def test_unsupported_version_is_rejected():
    with pytest.raises(ValueError, match="not supported"):
        PkgIndex(INDEX_NAME, _build(3, CSO2_KEYS, version=1), CSO2_KEYS).validate_header()


def test_size_mismatch_is_rejected():
    with pytest.raises(ValueError, match="file size"):
        PkgIndex(INDEX_NAME, _build(3, CSO2_KEYS) + b"\0", CSO2_KEYS).validate_header()


def test_wrong_name_fails_to_decrypt():
    data = _build(4, CSO2_KEYS)
    index = PkgIndex("other.pkg", data, CSO2_KEYS)
    index.validate_header()
    with pytest.raises(RuntimeError):
        index.parse()
    assert index.filenames() == []


def test_wrong_keys_fail_to_decrypt():
    data = _build(4, CSO2_KEYS)
    index = PkgIndex(INDEX_NAME, data, TFO_KEYS)
    index.validate_header()
    with pytest.raises(RuntimeError):
        index.parse()
    assert index.filenames() == []