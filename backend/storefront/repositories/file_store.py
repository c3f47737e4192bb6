import json
import logging
import os
import re
import tempfile
from typing import Dict, List, Optional, Tuple

from filelock import FileLock

from storefront.repositories.durable_store import DurableStore

log = logging.getLogger("storage")

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]+")


class FileDurableStore(DurableStore):
    """
    One JSON document per key in `directory`:
        {"version": 3, "writer": "<context id>", "value": "<raw string>"}
    Writes go to a temp file and are renamed into place while holding a
    per-key FileLock, so readers never see a half-written document.
    """

    def __init__(self, directory: str, context_id: Optional[str] = None, lock_timeout: float = 10):
        super().__init__(context_id)
        self.directory = directory
        self.lock_timeout = lock_timeout
        os.makedirs(directory, exist_ok=True)
        self._seen: Dict[str, int] = {}

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, _SAFE_KEY.sub("-", key) + ".json")

    def _load(self, key: str) -> Tuple[int, Optional[str], Optional[str]]:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                doc = json.load(fh)
            if not isinstance(doc, dict):
                return 0, None, None
            version = int(doc.get("version") or 0)
        except FileNotFoundError:
            return 0, None, None
        except (OSError, ValueError, TypeError):
            log.warning("unreadable storage document %s", path)
            return 0, None, None
        return version, doc.get("writer"), doc.get("value")

    def read(self, key: str) -> Optional[str]:
        version, _, value = self._load(key)
        self._seen[key] = version
        return value

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        with FileLock(path + ".lock", timeout=self.lock_timeout):
            version, _, _ = self._load(key)
            version += 1
            fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump({"version": version, "writer": self.context_id, "value": value}, fh)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
        self._seen[key] = version

    def poll(self) -> List[str]:
        changed = []
        for key in list(self._subscribers):
            version, writer, value = self._load(key)
            if version == self._seen.get(key, 0):
                continue
            self._seen[key] = version
            if writer == self.context_id:
                continue
            changed.append(key)
            self._notify(key, value)
        return changed

    def health_check(self) -> bool:
        return os.path.isdir(self.directory) and os.access(self.directory, os.W_OK)
