import logging

from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart, get_ledger
from storefront.api.errors import failure_response
from storefront.exceptions import StorefrontError
from storefront.schemas.cart_schema import CompleteOrderIn
from storefront.services.cart_store import CartStore
from storefront.services.reservation_ledger import InventoryReservationLedger

router = APIRouter(tags=["orders"])

log = logging.getLogger("checkout")


@router.post("/complete", summary="Confirm a paid order")
async def complete_order(
    payload: CompleteOrderIn,
    cart: CartStore = Depends(get_cart),
    ledger: InventoryReservationLedger = Depends(get_ledger),
):
    """Called once payment is confirmed: drop the cart and its holds."""
    try:
        items = cart.items
    except StorefrontError as e:
        return failure_response(e)
    for item in items:
        ledger.release_many(item.id, item.quantity)
    cart.clear()
    log.info("order %s completed, cleared %d line(s)", payload.session_id or "-", len(items))
    return {"ok": True, "session_id": payload.session_id, "cleared": len(items)}
