# uncso2

A pure Python library for reading the game data archives of Counter-Strike
Online 2 and Titanfall Online. It can:

- decrypt and parse PKG index files and list the file names they hold
  (`uncso2.pkgindex.PkgIndex`);
- decrypt PKG file headers, read their entry tables and decrypt each entry
  (`uncso2.pkgfile.PkgFile`, `uncso2.pkgentry.PkgEntry`,
  `uncso2.pkgoptions.PkgFileOptions`);
- decrypt `.e*` files such as `.ecsv` or `.ecfg`
  (`uncso2.encryptedfile.EncryptedFile`);
- decompress LZMA-compressed VTF textures
  (`uncso2.lzmatexture.LzmaTexture`).

Invalid input raises an exception (`ValueError`, `RuntimeError`, or
`uncso2.lzma_decoder.LzmaError`, itself a `ValueError`).

## Installation

From a checkout of the project:

```
pip install .
```

The only dependency is `pycryptodome`.

## Usage

Keys are not shipped with the package; you supply them yourself.

### PKG index files

```python
from uncso2.pkgindex import PkgIndex

key_collection = [bytes(16)] * 4  # four 16-byte keys, placeholder values

with open("index.pkg", "rb") as fh:
    data = fh.read()

index = PkgIndex("1b87c6b551e518d11114ee21b7645a47.pkg", data, key_collection)
index.validate_header()          # must come before parse()
new_size = index.parse()         # header size plus decrypted data size
for name in index.filenames():
    print(name)
```

The key collection may also be given later with `set_key_collection()`.
`parse()` raises `RuntimeError` if the header was not validated, no key
collection was set, or the data did not decrypt to a list whose first line
is the index's own name.

### PKG files

```python
from uncso2.pkgfile import PkgFile
from uncso2.pkgoptions import PkgFileOptions

entry_key = "secret"
data_key = "secret"

with open("archive.pkg", "rb") as fh:
    data = bytearray(fh.read())

options = PkgFileOptions(tfo_pkg=False)   # True for Titanfall Online archives
pkg = PkgFile("archive.pkg", data, entry_key, data_key, options)
if not pkg.decrypt_header():
    raise SystemExit("wrong entry key")
pkg.parse()
for entry in pkg.entries():
    contents = entry.decrypt_file()
    print(entry.file_path, len(contents))
```

A writable buffer such as a `bytearray` has its header and entry table
decrypted in place; read-only data is copied first. Entry contents are
returned as new `bytes`.

`PkgFile.header_size(tfo_pkg)` gives the size of the header including its
leading 33-byte hash, and `pkg.full_header_size()` (after `decrypt_header()`)
the size of the header plus the entry table, which is how much of an archive
has to be read before its entries can be parsed. After `parse()`,
`pkg.md5_hash` holds the hash string stored at the start of the file.
`set_entry_key()`, `set_data_key()`, `set_data_buffer()` and
`release_data_buffer()` change the keys or the data afterwards.

`PkgEntry.decrypt_file(bytes_to_decrypt)` returns only the first
`bytes_to_decrypt` bytes, rounded up to a multiple of 16; with `0` (the
default) it returns the whole file. Each entry has `file_path` (rooted at
`/`, with `/` separators), `pkg_file_offset`, `encrypted_size`,
`decrypted_size` and `is_encrypted`.

### Encrypted `.e*` files

```python
from uncso2.encryptedfile import EncryptedFile

if EncryptedFile.is_encrypted_file(data):
    plain = EncryptedFile("attachments.ecsv", data, key_collection).decrypt()
```

`is_encrypted_file()` checks only the header, so the first
`EncryptedFile.header_size()` bytes are enough.

### LZMA textures

```python
from uncso2.lzmatexture import LzmaTexture

if LzmaTexture.is_lzma_texture(data):
    texture = LzmaTexture(data)
    vtf = texture.decompress()
    assert len(vtf) == texture.original_size()
```

## Lower-level modules

- `uncso2.ciphers`: `AesCipher`, `DesCipher` and `BlowfishCipher` (CBC mode,
  optional PKCS#7 padding, `decrypt()` and `decrypt_in_place()`), the
  `CipherKind` enum and `create_index_cipher()`.
- `uncso2.keyhashes`: `generate_pkg_index_key()` and
  `generate_pkg_file_key()`, the MD5-based key derivations.
- `uncso2.lzma_decoder`: `is_compressed()`, `get_actual_size()` and
  `uncompress()` for data with an `LZMA` header, and `LzmaStream` for
  decoding such data, or ZIP-embedded LZMA data, in pieces.
- `uncso2.structures`: dataclasses that parse the binary headers
  (`PkgIndexHeader`, `PkgHeader`, `PkgHeaderTfo`, `PkgEntryHeader`,
  `EncryptedFileHeader`).

## What it does not do

The package is a library only: it has no command-line tool, and it does not
write files to disk. It reads and decrypts archives but cannot create,
encrypt or modify them, and it does not check a PKG file against its stored
MD5 hash.

## Running the tests

```
pip install ".[test]"
pytest
```