import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from storefront.exceptions import CartNotReady, StorageCorrupt
from storefront.models.cart_item import CartItem, CatalogEntry
from storefront.repositories.durable_store import DurableStore
from storefront.utils.quantity import clamp_quantity

log = logging.getLogger("cart")

DEFAULT_CART_KEY = "jb_cart_v1"


def parse_cart(raw: Optional[str]) -> List[CartItem]:
    """
    Parse a stored cart blob. Records that fail validation are dropped; a blob
    that isn't a JSON list raises StorageCorrupt. Repeated ids are folded into
    one line.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise StorageCorrupt(f"cart blob is not JSON: {e}")
    if not isinstance(parsed, list):
        raise StorageCorrupt("cart blob is not a list")

    items: Dict[str, CartItem] = {}
    for record in parsed:
        try:
            item = CartItem.model_validate(record)
        except ValidationError:
            log.debug("dropping invalid cart record %r", record)
            continue
        if item.id in items:
            item = items[item.id].with_quantity(items[item.id].quantity + item.quantity)
        items[item.id] = item
    return list(items.values())


def dump_cart(items: Iterable[CartItem]) -> str:
    return json.dumps([item.model_dump() for item in items])


@dataclass(frozen=True)
class CartSnapshot:
    ready: bool
    items: Optional[Tuple[CartItem, ...]]
    subtotal: Optional[int]
    open: bool = False


class CartStore:
    """
    In-memory cart with a write-behind copy in a DurableStore.

    Memory is the source of truth. Every mutation is written through to the
    store once the cart has hydrated; writes from other contexts replace the
    whole in-memory cart (last write wins, no merging).
    """

    def __init__(self, store: DurableStore, key: str = DEFAULT_CART_KEY):
        self.store = store
        self.key = key
        self.open = False  # drawer visibility, presentation only
        self._items: Dict[str, CartItem] = {}
        self._ready = False
        self._unsubscribe = store.subscribe(key, self._on_external_change)

    # --- lifecycle ---

    def hydrate(self) -> "CartStore":
        """Load the stored cart once. Until this runs, reads raise CartNotReady."""
        if self._ready:
            return self
        loaded = self._parse(self._read())
        if loaded:
            self._items = {item.id: item for item in loaded}
        self._ready = True
        if not loaded and self._items:
            # mutations made before hydration finished
            self._persist()
        log.info("cart hydrated with %d line(s)", len(self._items))
        return self

    def close(self) -> None:
        self._unsubscribe()

    @property
    def ready(self) -> bool:
        return self._ready

    # --- reads ---

    @property
    def items(self) -> Tuple[CartItem, ...]:
        self._require_ready()
        return tuple(self._items.values())

    @property
    def subtotal(self) -> int:
        self._require_ready()
        return sum(item.line_total for item in self._items.values())

    @property
    def count(self) -> int:
        self._require_ready()
        return sum(item.quantity for item in self._items.values())

    def get(self, item_id: str) -> Optional[CartItem]:
        self._require_ready()
        return self._items.get(item_id)

    def snapshot(self) -> CartSnapshot:
        if not self._ready:
            return CartSnapshot(ready=False, items=None, subtotal=None, open=self.open)
        return CartSnapshot(ready=True, items=self.items, subtotal=self.subtotal, open=self.open)

    # --- mutations ---

    def add(self, entry: Union[CatalogEntry, dict], quantity=1) -> CartItem:
        entry = CatalogEntry.model_validate(entry)
        delta = clamp_quantity(quantity)
        existing = self._items.get(entry.id)
        if existing:
            item = existing.with_quantity(existing.quantity + delta)
        else:
            item = CartItem(
                id=entry.id, name=entry.name, unit_price=entry.unit_price, image=entry.image, quantity=delta
            )
        self._items[item.id] = item
        self.open = True
        self._persist()
        return item

    def remove(self, item_id: str) -> Optional[CartItem]:
        item = self._items.pop(item_id, None)
        if item is not None:
            self._persist()
        return item

    def set_quantity(self, item_id: str, quantity) -> Optional[CartItem]:
        """Zero or negative quantities clamp to 1; use remove() to drop a line."""
        existing = self._items.get(item_id)
        if existing is None:
            return None
        item = existing.with_quantity(clamp_quantity(quantity))
        self._items[item_id] = item
        self._persist()
        return item

    def set_open(self, open: bool) -> None:
        """Show or hide the cart drawer. Presentation only; nothing is persisted."""
        self.open = bool(open)

    def clear(self) -> None:
        self._items = {}
        self._persist()

    # --- storage ---

    def _require_ready(self) -> None:
        if not self._ready:
            raise CartNotReady("cart has not been loaded yet")

    def _read(self) -> Optional[str]:
        try:
            return self.store.read(self.key)
        except Exception:
            log.warning("cart read failed, starting empty", exc_info=True)
            return None

    def _parse(self, raw: Optional[str]) -> List[CartItem]:
        try:
            return parse_cart(raw)
        except StorageCorrupt as e:
            log.warning("discarding stored cart: %s", e)
            return []

    def _persist(self) -> None:
        if not self._ready:
            return
        try:
            self.store.write(self.key, dump_cart(self._items.values()))
        except Exception:
            log.warning("cart write failed; keeping in-memory state", exc_info=True)

    def _on_external_change(self, raw: Optional[str]) -> None:
        self._items = {item.id: item for item in self._parse(raw)}
        log.info("cart replaced by external write (%d line(s))", len(self._items))
