from fastapi import APIRouter, Depends

from storefront.api.deps import get_ledger
from storefront.schemas.cart_schema import ReleaseIn, ReserveIn
from storefront.services.reservation_ledger import InventoryReservationLedger

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.post("/reserve")
async def reserve(payload: ReserveIn, ledger: InventoryReservationLedger = Depends(get_ledger)):
    """
    payload: { "catalog_id": "forest-ember" }
    Advisory only; always succeeds.
    """
    ok = ledger.reserve_one(payload.catalog_id)
    return {"ok": ok, "catalog_id": payload.catalog_id, "reserved": ledger.live_count(payload.catalog_id)}


@router.post("/release")
async def release(payload: ReleaseIn, ledger: InventoryReservationLedger = Depends(get_ledger)):
    """
    payload: { "catalog_id": "forest-ember", "count": 2 }
    """
    released = ledger.release_many(payload.catalog_id, payload.count)
    return {
        "catalog_id": payload.catalog_id,
        "released": released,
        "reserved": ledger.live_count(payload.catalog_id),
    }


@router.post("/sweep")
async def sweep(ledger: InventoryReservationLedger = Depends(get_ledger)):
    return {"purged": ledger.sweep_expired()}


@router.get("/reserved/{catalog_id}")
async def reserved(catalog_id: str, ledger: InventoryReservationLedger = Depends(get_ledger)):
    holds = ledger.reservations(catalog_id)
    return {
        "catalog_id": catalog_id,
        "reserved": len(holds),
        "expires_at": [r.expires_at.isoformat() for r in holds],
    }
