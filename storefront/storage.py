# storefront/storage.py
"""
Durable local state: named JSON snapshots kept in one directory per browser session.

    storage = LocalStorage(Path("storage") / sid)
    storage.set_item("cart-storage", [...])
    storage.get_item("cart-storage")
"""
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock

logger = logging.getLogger(__name__)

CART_NAMESPACE = "cart-storage"
AUTH_NAMESPACE = "auth-storage"


class LocalStorage:
    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        if not re.fullmatch(r"[A-Za-z0-9_.-]+", name):
            raise ValueError(f"Invalid storage name: {name!r}")
        return self.directory / f"{name}.json"

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock")

    def get_item(self, name: str) -> Optional[Any]:
        path = self._path(name)
        if not path.exists():
            return None
        with self._lock_for(path):
            try:
                with open(path, "r", encoding="utf-8") as fh:
                    return json.load(fh)
            except (OSError, ValueError) as e:
                logger.warning("Discarding unreadable snapshot %s: %s", path, e)
                return None

    def set_item(self, name: str, value: Any) -> None:
        path = self._path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock_for(path):
            # write to a sibling temp file first so a reader never sees half a snapshot
            fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(value, fh, ensure_ascii=False)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise

    def remove_item(self, name: str) -> None:
        path = self._path(name)
        if not path.exists():
            return
        with self._lock_for(path):
            if path.exists():
                path.unlink()
