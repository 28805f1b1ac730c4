"""File system access used for globbing and change detection."""
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)


class WalkError(OSError):
    """Raised when walking a directory tree fails."""

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class WalkEntry:
    """A single entry produced while walking a tree.

    ``path`` is relative to the walked root and always uses ``/``. When
    listing a directory fails the entry carries the ``error`` instead.
    """

    path: str
    is_dir: bool
    error: Optional[OSError] = None


class FileSystem(ABC):
    """Capabilities the globber and the watcher need from a file system."""

    @abstractmethod
    def walk(self, root: str = ".") -> Iterator[WalkEntry]:
        """
        Walk the tree below ``root`` depth first.

        Entries of a directory are produced in lexical order, each directory
        immediately followed by its own contents. The root itself is not
        produced unless listing it fails.

        Args:
            root: Directory to walk, relative to the file system base

        Returns:
            Iterator of walk entries with paths relative to ``root``
        """

    @abstractmethod
    def modtime(self, path: str) -> float:
        """
        Return the last modification time of ``path``.

        Args:
            path: File path relative to the file system base

        Returns:
            Modification time in seconds since the epoch

        Raises:
            OSError: If the file cannot be stat'ed
        """


class LocalFileSystem(FileSystem):
    """File system rooted at a directory on the local disk."""

    def __init__(self, base_dir: Union[str, Path]):
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def walk(self, root: str = ".") -> Iterator[WalkEntry]:
        yield from self._walk(self._resolve(root), "")

    def modtime(self, path: str) -> float:
        return self._resolve(path).stat().st_mtime

    def _resolve(self, path: str) -> Path:
        if path in ("", "."):
            return self._base_dir
        return self._base_dir.joinpath(*path.split("/"))

    def _walk(self, directory: Path, prefix: str) -> Iterator[WalkEntry]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as exc:
            logger.debug("Failed to list %s: %s", directory, exc)
            yield WalkEntry(path=prefix or ".", is_dir=True, error=exc)
            return

        for entry in entries:
            relative = f"{prefix}/{entry.name}" if prefix else entry.name
            # Symlinked directories are reported but not descended into.
            is_dir = entry.is_dir(follow_symlinks=False)
            yield WalkEntry(path=relative, is_dir=is_dir)
            if is_dir:
                yield from self._walk(Path(entry.path), relative)
