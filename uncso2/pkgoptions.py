"""Options for reading package files."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PkgFileOptions:
    """Options used when opening a package file.

    ``tfo_pkg`` selects the Titanfall Online header layout instead of the
    Counter-Strike Online 2 one; it is off by default.
    """

    tfo_pkg: bool = False