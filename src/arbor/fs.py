"""Virtual filesystems the compiler reads from.

Paths are slash-separated and relative to the filesystem root; ``"."``
names the root itself. ``list_dir`` returns entries sorted by name so
every compile pass enumerates directories in the same lexical order.
"""

import posixpath
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Entry:
    """One directory entry."""

    name: str
    is_dir: bool


class FileSystem(Protocol):
    """Read-only filesystem interface consumed by the compiler and router."""

    def list_dir(self, path: str) -> list[Entry]: ...

    def read_bytes(self, path: str) -> bytes: ...

    def is_file(self, path: str) -> bool: ...


def clean(path: str) -> str:
    """Normalize a relative path; the root becomes ``"."``."""
    cleaned = posixpath.normpath("/" + path.strip("/")).lstrip("/")
    return cleaned or "."


def join(*parts: str) -> str:
    """Join path parts and normalize the result."""
    return clean(posixpath.join(*parts))


class DirFS:
    """Filesystem backed by a directory on disk.

    Security: resolves symlinks and verifies the final path is within
    the root directory to prevent path traversal.
    """

    __slots__ = ("_root",)

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        relative = clean(path)
        resolved = self._root if relative == "." else (self._root / relative).resolve()
        if not resolved.is_relative_to(self._root):
            raise FileNotFoundError(path)
        return resolved

    def list_dir(self, path: str) -> list[Entry]:
        directory = self._resolve(path)
        return sorted(
            (Entry(item.name, item.is_dir()) for item in directory.iterdir()),
            key=lambda entry: entry.name,
        )

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def is_file(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except FileNotFoundError:
            return False

    def __repr__(self) -> str:
        return f"DirFS({str(self._root)!r})"


class MemoryFS:
    """Filesystem held in a dict of path -> content.

    Parent directories are implied by file paths; ``dirs`` adds empty
    directories. Files can be added, replaced, and removed in place,
    which makes it the natural fixture for reload tests::

        fs = MemoryFS({"index.md": "# Hello"})
        fs["index.md"] = "# Updated"
    """

    __slots__ = ("_dirs", "_files")

    def __init__(
        self,
        files: Mapping[str, bytes | str] | None = None,
        dirs: Iterable[str] = (),
    ) -> None:
        self._files: dict[str, bytes] = {}
        self._dirs: set[str] = {clean(d) for d in dirs}
        for path, content in (files or {}).items():
            self[path] = content

    def __setitem__(self, path: str, content: bytes | str) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._files[clean(path)] = content

    def __delitem__(self, path: str) -> None:
        del self._files[clean(path)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def _all_dirs(self) -> set[str]:
        dirs = {"."} | self._dirs
        for path in self._files:
            parent = posixpath.dirname(path)
            while parent:
                dirs.add(parent)
                parent = posixpath.dirname(parent)
        for path in self._dirs:
            parent = posixpath.dirname(path)
            while parent:
                dirs.add(parent)
                parent = posixpath.dirname(parent)
        return dirs

    def list_dir(self, path: str) -> list[Entry]:
        directory = clean(path)
        dirs = self._all_dirs()
        if directory not in dirs:
            raise FileNotFoundError(path)

        def parent_of(item: str) -> str:
            return posixpath.dirname(item) or "."

        entries = [
            Entry(posixpath.basename(d), True)
            for d in dirs
            if d != "." and parent_of(d) == directory
        ]
        entries.extend(
            Entry(posixpath.basename(f), False) for f in self._files if parent_of(f) == directory
        )
        return sorted(entries, key=lambda entry: entry.name)

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._files[clean(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    def is_file(self, path: str) -> bool:
        return clean(path) in self._files

    def __repr__(self) -> str:
        return f"MemoryFS({sorted(self._files)!r})"
