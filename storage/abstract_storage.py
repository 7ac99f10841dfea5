"""Storage abstraction for uploaded certificate files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, BinaryIO


class AbstractStorage(ABC):
    """Interface every upload backend implements."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Persist ``file_obj`` under ``filename`` and return its relative path."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return whether the relative path exists."""

    @abstractmethod
    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Open a stored file."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove a stored file; return False if it was already gone."""

    @abstractmethod
    def absolute_path(self, path: str) -> str:
        """Return the filesystem location used for downloads."""
