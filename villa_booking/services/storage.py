from __future__ import annotations

import logging
from pathlib import Path

from villa_booking.core.config import get_settings

logger = logging.getLogger(__name__)


class LocalStorage:
    """Object store backed by a directory; keys are relative POSIX paths."""

    def __init__(self, root: str | Path, base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Invalid storage key: {key}")
        return path

    def save(self, key: str, data: bytes) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return self.url_for(key)

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info("Stored object %s already removed", key)

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"


def get_storage() -> LocalStorage:
    settings = get_settings()
    return LocalStorage(settings.media_root, settings.media_base_url)
