import logging
from typing import Dict, List, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError

from storefront.models.storage_entry import StorageEntry
from storefront.repositories.durable_store import DurableStore

log = logging.getLogger("storage")


class SqlDurableStore(DurableStore):
    """
    Durable store backed by the storage_entries table. Every write bumps the
    row version; poll() compares versions to spot writes from other contexts.
    Each call uses its own short-lived session.
    """

    def __init__(self, session_factory, context_id: Optional[str] = None):
        super().__init__(context_id)
        self.session_factory = session_factory
        self._seen: Dict[str, int] = {}

    def read(self, key: str) -> Optional[str]:
        with self.session_factory() as s:
            entry = s.get(StorageEntry, key)
            if entry is None:
                self._seen[key] = 0
                return None
            self._seen[key] = entry.version
            return entry.value

    def write(self, key: str, value: str) -> None:
        try:
            version = self._upsert(key, value)
        except IntegrityError:
            # another context inserted the row between our get and our insert
            log.debug("write(): insert collision for key=%r, retrying as update", key)
            version = self._upsert(key, value)
        self._seen[key] = version

    def _upsert(self, key: str, value: str) -> int:
        with self.session_factory() as s:
            entry = s.get(StorageEntry, key)
            if entry is None:
                entry = StorageEntry(key=key, value=value, version=1, writer=self.context_id)
                s.add(entry)
            else:
                entry.value = value
                entry.version = (entry.version or 0) + 1
                entry.writer = self.context_id
            s.commit()
            return entry.version

    def poll(self) -> List[str]:
        keys = list(self._subscribers)
        if not keys:
            return []
        with self.session_factory() as s:
            entries = s.execute(select(StorageEntry).where(StorageEntry.key.in_(keys))).scalars().all()
        changed = []
        for entry in entries:
            if entry.version == self._seen.get(entry.key, 0):
                continue
            self._seen[entry.key] = entry.version
            if entry.writer == self.context_id:
                continue
            changed.append(entry.key)
            self._notify(entry.key, entry.value)
        return changed

    def health_check(self) -> bool:
        try:
            with self.session_factory() as s:
                s.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
