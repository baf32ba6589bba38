"""Decrypt and parse game PKG archives, indexes, encrypted files and LZMA textures."""

__version__ = "1.0.0"

__all__ = [
    "ciphers",
    "keyhashes",
    "lzma_decoder",
    "lzmatexture",
    "structures",
    "encryptedfile",
    "pkgindex",
    "pkgentry",
    "pkgoptions",
    "pkgfile",
]