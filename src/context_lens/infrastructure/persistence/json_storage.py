"""
infrastructure.persistence.json_storage - On-device key-value storage.

Implements KeyValueStorage with one JSON file per key under a directory
(default ~/.context-lens/), the same way the CLI keeps its session file.
Writes go to a temp file first and are swapped in with os.replace so a
crash never leaves a half-written key behind.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from context_lens.domain.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStorage:
    """File-per-key implementation of KeyValueStorage."""

    def __init__(self, directory: Path | str):
        self._dir = Path(directory)

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(f"Cannot read '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            self._discard(tmp)
            raise StorageUnavailableError(f"Cannot write '{key}': {e}") from e
        logger.debug("Wrote %d chars to %s", len(value), path)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot remove '{key}': {e}") from e

    @staticmethod
    def _discard(tmp: Path) -> None:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("Could not remove %s: %s", tmp, e)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"
