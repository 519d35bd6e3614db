"""
Interfaces for filesystem access.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Protocol


class FileSystem(Protocol):
    """Read-only view of a workspace on disk.

    Every method may raise ``OSError`` for entries that cannot be read;
    callers treat such failures as missing data.
    """

    def exists(self, path: Path) -> bool:
        ...

    def is_dir(self, path: Path) -> bool:
        ...

    def is_file(self, path: Path) -> bool:
        ...

    def is_symlink(self, path: Path) -> bool:
        ...

    def list_dir(self, path: Path) -> List[Path]:
        ...

    def read_text(self, path: Path) -> str:
        ...

    def mtime(self, path: Path) -> float:
        ...
