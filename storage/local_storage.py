"""Local filesystem storage for uploaded files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, BinaryIO

from werkzeug.utils import secure_filename

from .abstract_storage import AbstractStorage

logger = logging.getLogger(__name__)


class LocalStorage(AbstractStorage):
    """Keep files flat inside a single upload directory."""

    def __init__(self, upload_dir: str):
        self.base_directory = Path(upload_dir)
        os.makedirs(self.base_directory, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        candidate = (self.base_directory / path).resolve()
        if self.base_directory.resolve() not in candidate.parents:
            raise ValueError("Path escapes the upload directory.")
        return candidate

    def save(self, file_obj: IO[bytes], filename: str) -> str:
        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        destination = self.base_directory / safe_name
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())
        return safe_name

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        return open(self._resolve(path), mode)

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.warning("Stored file %s was already missing", path)
            return False
        return True

    def absolute_path(self, path: str) -> str:
        return str(self._resolve(path))
