"""Key-value persistence for drafts, submitted snapshots and queued submissions.

Keys follow ``rsvp_form_<token>`` for form snapshots and
``rsvp_pending_<token>`` for submissions waiting to reach the backend.
"""

import abc
import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any

from src.config.settings import settings

logger = logging.getLogger(__name__)

FORM_KEY_PREFIX = "rsvp_form_"
PENDING_KEY_PREFIX = "rsvp_pending_"
FAILED_KEY_PREFIX = "rsvp_failed_"


def form_key(token: str) -> str:
    return f"{FORM_KEY_PREFIX}{token}"


def pending_key(token: str) -> str:
    return f"{PENDING_KEY_PREFIX}{token}"


def failed_key(token: str) -> str:
    return f"{FAILED_KEY_PREFIX}{token}"


class LocalStore(abc.ABC):
    @abc.abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def set(self, key: str, value: dict[str, Any]) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        raise NotImplementedError


class InMemoryLocalStore(LocalStore):
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return json.loads(json.dumps(value)) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        # stored as JSON would be, so non-serialisable values fail here too
        self._data[key] = json.loads(json.dumps(value))

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self._data if key.startswith(prefix))


class FileLocalStore(LocalStore):
    """One JSON file per key inside ``directory``."""

    def __init__(self, directory: str | Path | None = None) -> None:
        self.directory = Path(directory or settings.local_store_dir)

    def _path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_\-]", "_", key)
        return self.directory / f"{safe_key}.json"

    async def get(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            return json.loads(content)
        except json.JSONDecodeError:
            logger.warning(f"Discarding corrupt local store entry {key}")
            return None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        content = json.dumps(value, indent=2)
        await asyncio.to_thread(self._write, self._path(key), content)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)

    async def keys(self, prefix: str = "") -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(
            path.stem for path in self.directory.glob("*.json") if path.stem.startswith(prefix)
        )

    def _write(self, path: Path, content: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)
