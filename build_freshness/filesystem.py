"""
Filesystem implementations: the real disk and an in-memory snapshot.
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .interfaces import FileSystem


class LocalFileSystem(FileSystem):
    """Filesystem backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return os.path.exists(path)

    def is_dir(self, path: Path) -> bool:
        return os.path.isdir(path)

    def is_file(self, path: Path) -> bool:
        return os.path.isfile(path)

    def is_symlink(self, path: Path) -> bool:
        return os.path.islink(path)

    def list_dir(self, path: Path) -> List[Path]:
        return sorted(Path(path).iterdir())

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def mtime(self, path: Path) -> float:
        return Path(path).stat().st_mtime


def _key(path) -> str:
    return posixpath.normpath(str(PurePosixPath(path)))


class MemoryFileSystem(FileSystem):
    """In-memory workspace snapshot.

    Paths are POSIX-style. Directories are implied by the files beneath
    them and can also be created empty with ``mkdir``. Paths listed in
    ``unreadable`` raise ``PermissionError`` on every access. Directories
    created with ``symlink`` report themselves as symbolic links.
    """

    def __init__(
        self,
        files: Optional[Dict[str, Tuple[str, float]]] = None,
        unreadable: Optional[Iterable[str]] = None,
    ) -> None:
        self._files: Dict[str, Tuple[str, float]] = {}
        self._dirs: Set[str] = {"/"}
        self._unreadable: Set[str] = {_key(p) for p in unreadable or ()}
        self._links: Set[str] = set()
        for path, (content, mtime) in (files or {}).items():
            self.write(path, content, mtime)

    def write(self, path, content: str = "", mtime: float = 0.0) -> None:
        key = _key(path)
        self._files[key] = (content, mtime)
        self._add_parents(key)

    def mkdir(self, path) -> None:
        key = _key(path)
        self._dirs.add(key)
        self._add_parents(key)

    def symlink(self, path) -> None:
        self.mkdir(path)
        self._links.add(_key(path))

    def deny(self, path) -> None:
        self._unreadable.add(_key(path))

    def _add_parents(self, key: str) -> None:
        parent = posixpath.dirname(key)
        while parent and parent not in self._dirs:
            self._dirs.add(parent)
            parent = posixpath.dirname(parent)

    def _check(self, key: str) -> None:
        if key in self._unreadable:
            raise PermissionError(f"Permission denied: {key}")

    def exists(self, path: Path) -> bool:
        key = _key(path)
        return key in self._files or key in self._dirs

    def is_dir(self, path: Path) -> bool:
        return _key(path) in self._dirs

    def is_file(self, path: Path) -> bool:
        return _key(path) in self._files

    def is_symlink(self, path: Path) -> bool:
        return _key(path) in self._links

    def list_dir(self, path: Path) -> List[Path]:
        key = _key(path)
        self._check(key)
        if key not in self._dirs:
            raise FileNotFoundError(f"No such directory: {key}")
        children = {
            entry
            for entry in self._files.keys() | self._dirs
            if entry != key and posixpath.dirname(entry) == key
        }
        return [Path(child) for child in sorted(children)]

    def read_text(self, path: Path) -> str:
        key = _key(path)
        self._check(key)
        if key not in self._files:
            raise FileNotFoundError(f"No such file: {key}")
        return self._files[key][0]

    def mtime(self, path: Path) -> float:
        key = _key(path)
        self._check(key)
        if key in self._files:
            return self._files[key][1]
        if key in self._dirs:
            return 0.0
        raise FileNotFoundError(f"No such file: {key}")
