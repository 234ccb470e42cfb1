"""File system capability injected into the scheduler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class FileSystem(ABC):
    """Reads sources and writes companion files.

    Paths handed to :meth:`write_text` and :meth:`read_existing` are POSIX
    strings; implementations convert them to host paths.
    """

    @abstractmethod
    def read_text(self, path: str) -> str:
        ...

    @abstractmethod
    def read_existing(self, path: str) -> Optional[str]:
        """Current content of *path*, or None when it does not exist."""
        ...

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        ...


class LocalFileSystem(FileSystem):
    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")

    def read_existing(self, path: str) -> Optional[str]:
        target = Path(path)
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    def write_text(self, path: str, content: str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8", newline="\n")
