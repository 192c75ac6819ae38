from __future__ import annotations

import os
import shutil
import stat as statmod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol


@dataclass(slots=True, frozen=True)
class StatResult:
    size: int
    is_dir: bool
    is_file: bool = False


@dataclass(slots=True, frozen=True)
class DirEntry:
    path: str
    name: str
    is_dir: bool
    is_symlink: bool = False


class FileSystem(Protocol):
    def expanduser(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...

    def absolute(self, path: str) -> str: ...

    def stat(self, path: str) -> StatResult: ...

    def scandir(self, path: str) -> Iterable[DirEntry]: ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str: ...

    def remove_tree(self, path: str) -> None: ...


class OsFileSystem:
    def expanduser(self, path: str) -> str:
        return str(Path(path).expanduser())

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def absolute(self, path: str) -> str:
        return os.path.abspath(path)

    def stat(self, path: str) -> StatResult:
        st = os.stat(path, follow_symlinks=False)
        return StatResult(
            size=st.st_size,
            is_dir=statmod.S_ISDIR(st.st_mode),
            is_file=statmod.S_ISREG(st.st_mode),
        )

    def scandir(self, path: str) -> Iterable[DirEntry]:
        # Materialised so the directory handle is closed before callers act on entries.
        result: list[DirEntry] = []
        with os.scandir(path) as entries:
            for e in entries:
                try:
                    is_symlink = e.is_symlink()
                    is_dir = not is_symlink and e.is_dir(follow_symlinks=False)
                except OSError:
                    is_symlink = False
                    is_dir = False
                result.append(DirEntry(path=e.path, name=e.name, is_dir=is_dir, is_symlink=is_symlink))
        return result

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return Path(path).read_text(encoding=encoding)

    def remove_tree(self, path: str) -> None:
        """Delete *path* recursively. A path that is already gone is not an error."""
        if not os.path.lexists(path):
            return
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)


DEFAULT_FS: FileSystem = OsFileSystem()
