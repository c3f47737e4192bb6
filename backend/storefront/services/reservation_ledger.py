import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from storefront.models.reservation import Reservation
from storefront.repositories.durable_store import DurableStore

log = logging.getLogger("reservations")

DEFAULT_RESERVATION_KEY = "jb_reservations_v1"

# catalog id -> expiry instants, stored as epoch milliseconds
ReservationMap = Dict[str, List[datetime]]


def _from_ms(ms) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(float(ms) / 1000.0, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class InventoryReservationLedger:
    """
    Advisory, client-local holds on catalog units.

    Nothing here is authoritative stock: reserve_one always succeeds and the
    counts only let other contexts guess that a unit is probably taken.
    Expired holds are purged lazily at the start of every read or write,
    never on a timer. Storage failures degrade to "no reservations".
    """

    def __init__(
        self,
        store: DurableStore,
        key: str = DEFAULT_RESERVATION_KEY,
        ttl_seconds: int = 900,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.key = key
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def reserve_one(self, catalog_id: str) -> bool:
        held = self._swept()
        expires_at = self.clock() + self.ttl
        held.setdefault(catalog_id, []).append(expires_at)
        self._save(held)
        log.debug("reserved one %s until %s", catalog_id, expires_at.isoformat())
        return True

    def release_many(self, catalog_id: str, n: int) -> int:
        """Drop up to `n` of the soonest-expiring holds for `catalog_id`. Returns how many went."""
        if n <= 0:
            return 0
        held = self._swept()
        current = sorted(held.get(catalog_id, []))
        if not current:
            return 0
        released = min(n, len(current))
        keep = current[released:]
        if keep:
            held[catalog_id] = keep
        else:
            held.pop(catalog_id, None)
        self._save(held)
        return released

    def sweep_expired(self) -> int:
        """Purge holds whose expiry has passed. Returns the number purged."""
        held = self._load()
        _, purged = self._sweep(held)
        return purged

    def live_count(self, catalog_id: str) -> int:
        return len(self._swept().get(catalog_id, []))

    def reservations(self, catalog_id: str) -> List[Reservation]:
        return [
            Reservation(catalog_id=catalog_id, expires_at=expires_at)
            for expires_at in sorted(self._swept().get(catalog_id, []))
        ]

    def counts(self) -> Dict[str, int]:
        return {catalog_id: len(held) for catalog_id, held in self._swept().items()}

    # --- storage ---

    def _swept(self) -> ReservationMap:
        held, _ = self._sweep(self._load())
        return held

    def _sweep(self, held: ReservationMap):
        now = self.clock()
        live: ReservationMap = {}
        purged = 0
        for catalog_id, expiries in held.items():
            keep = [e for e in expiries if e > now]
            purged += len(expiries) - len(keep)
            if keep:
                live[catalog_id] = keep
        if purged:
            log.debug("swept %d expired reservation(s)", purged)
            self._save(live)
        return live, purged

    def _load(self) -> ReservationMap:
        try:
            raw = self.store.read(self.key)
        except Exception:
            log.warning("reservation read failed; treating as empty", exc_info=True)
            return {}
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            log.warning("reservation blob is not JSON; treating as empty")
            return {}
        if not isinstance(parsed, dict):
            return {}

        held: ReservationMap = {}
        for catalog_id, expiries in parsed.items():
            if not isinstance(expiries, list):
                continue
            instants = [dt for dt in (_from_ms(ms) for ms in expiries) if dt is not None]
            if instants:
                held[str(catalog_id)] = instants
        return held

    def _save(self, held: ReservationMap) -> None:
        blob = json.dumps({cid: [_to_ms(e) for e in sorted(exp)] for cid, exp in held.items() if exp})
        try:
            self.store.write(self.key, blob)
        except Exception:
            log.warning("reservation write failed; hold not persisted", exc_info=True)
