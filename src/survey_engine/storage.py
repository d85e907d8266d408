"""Resume-storage backends.

``InMemoryResumeStorage`` keeps slots in a dict (tests, embedding, one
process).  ``FileResumeStorage`` keeps one UTF-8 file per slot under a
directory so a session survives a process restart; each write goes to a
temporary file first and is then atomically moved into place.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from survey_engine.interfaces import ResumeStorage

logger = logging.getLogger(__name__)

# Slot keys become file names; anything outside this set is replaced.
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class InMemoryResumeStorage(ResumeStorage):
    """Dict-backed slots."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._slots.get(key)

    def set(self, key: str, value: str) -> None:
        self._slots[key] = value

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)


class FileResumeStorage(ResumeStorage):
    """One file per slot under ``directory`` (created on first write)."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        return self._dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.slot"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Wrote resume slot %s (%d chars)", key, len(value))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
