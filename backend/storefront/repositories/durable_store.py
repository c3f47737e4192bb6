import logging
import weakref
from collections import defaultdict
from typing import Callable, Dict, List, Optional
from uuid import uuid4

log = logging.getLogger("storage")

ChangeCallback = Callable[[Optional[str]], None]


class DurableStore:
    """
    Key/value string store shared between execution contexts (tabs, workers,
    processes). Each instance is one context. Subscribers are told about writes
    made by *other* contexts, never about their own.

    Last write wins: nothing here locks across a read-then-write.
    """

    def __init__(self, context_id: Optional[str] = None):
        self.context_id = context_id or uuid4().hex
        self._subscribers: Dict[str, List[ChangeCallback]] = defaultdict(list)

    def read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def write(self, key: str, value: str) -> None:
        raise NotImplementedError

    def subscribe(self, key: str, callback: ChangeCallback) -> Callable[[], None]:
        self._subscribers[key].append(callback)

        def unsubscribe():
            try:
                self._subscribers[key].remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def poll(self) -> List[str]:
        """
        Look for writes made by other contexts and notify subscribers.
        Returns the keys that changed. Stores that push notifications on
        write have nothing to do here.
        """
        return []

    def health_check(self) -> bool:
        return True

    def _notify(self, key: str, value: Optional[str]) -> None:
        for callback in list(self._subscribers.get(key, ())):
            try:
                callback(value)
            except Exception:
                log.exception("change callback for %r failed", key)


class MemoryBackend:
    """Process-local shared storage; hand out one MemoryDurableStore per context."""

    def __init__(self):
        self.values: Dict[str, str] = {}
        # contexts drop out once nothing else references them
        self._contexts: "weakref.WeakSet[MemoryDurableStore]" = weakref.WeakSet()

    def context(self, context_id: Optional[str] = None) -> "MemoryDurableStore":
        return MemoryDurableStore(self, context_id=context_id)

    def _attach(self, store: "MemoryDurableStore") -> None:
        self._contexts.add(store)

    def _broadcast(self, origin: "MemoryDurableStore", key: str, value: str) -> None:
        for store in list(self._contexts):
            if store is not origin:
                store._notify(key, value)


class MemoryDurableStore(DurableStore):
    def __init__(self, backend: Optional[MemoryBackend] = None, context_id: Optional[str] = None):
        super().__init__(context_id)
        self.backend = backend or MemoryBackend()
        self.backend._attach(self)

    def read(self, key: str) -> Optional[str]:
        return self.backend.values.get(key)

    def write(self, key: str, value: str) -> None:
        self.backend.values[key] = value
        self.backend._broadcast(self, key, value)
