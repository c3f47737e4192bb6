from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.api.deps import get_cart, get_ledger, get_orchestrator, get_site_url
from storefront.api.errors import failure_response
from storefront.exceptions import StorefrontError
from storefront.schemas.cart_schema import AddItemIn, CartItemOut, CartOut, CheckoutOut, DrawerIn, SetQuantityIn
from storefront.services.cart_store import CartStore
from storefront.services.catalog import item_id_for
from storefront.services.checkout import CheckoutOrchestrator
from storefront.services.reservation_ledger import InventoryReservationLedger
from storefront.utils.quantity import clamp_quantity

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _cart_out(cart: CartStore) -> dict:
    snap = cart.snapshot()
    if not snap.ready:
        return CartOut(ready=False, open=snap.open).model_dump()
    items = [
        CartItemOut(
            id=i.id, name=i.name, unit_price=i.unit_price, image=i.image, quantity=i.quantity, line_total=i.line_total
        )
        for i in snap.items
    ]
    return CartOut(ready=True, open=snap.open, items=items, subtotal=snap.subtotal).model_dump()


@router.get("", summary="Get cart")
async def read_cart(cart: CartStore = Depends(get_cart)):
    return _cart_out(cart)


@router.patch("", summary="Open or close the cart drawer")
async def set_drawer(payload: DrawerIn, cart: CartStore = Depends(get_cart)):
    cart.set_open(payload.open)
    return _cart_out(cart)


@router.post("/items", summary="Add item to cart")
async def add_item(
    payload: AddItemIn,
    cart: CartStore = Depends(get_cart),
    ledger: InventoryReservationLedger = Depends(get_ledger),
):
    item_id = payload.id or item_id_for(payload.name, payload.slug)
    delta = clamp_quantity(payload.quantity)
    item = cart.add(
        {"id": item_id, "name": payload.name, "unit_price": payload.unit_price, "image": payload.image},
        delta,
    )
    # one advisory hold per unit added
    for _ in range(delta):
        ledger.reserve_one(item.id)
    return {"item_id": item.id, "cart": _cart_out(cart)}


@router.patch("/items/{item_id}", summary="Set line quantity")
async def set_quantity(
    item_id: str,
    payload: SetQuantityIn,
    cart: CartStore = Depends(get_cart),
    ledger: InventoryReservationLedger = Depends(get_ledger),
):
    try:
        before = cart.get(item_id)
    except StorefrontError as e:
        return failure_response(e)
    if before is None:
        return JSONResponse({"ok": False, "error": "Item not in cart"}, status_code=404)
    after = cart.set_quantity(item_id, payload.quantity)
    if after.quantity < before.quantity:
        ledger.release_many(item_id, before.quantity - after.quantity)
    return {"item_id": item_id, "cart": _cart_out(cart)}


@router.delete("/items/{item_id}", summary="Remove item")
async def remove_item(
    item_id: str,
    cart: CartStore = Depends(get_cart),
    ledger: InventoryReservationLedger = Depends(get_ledger),
):
    removed = cart.remove(item_id)
    if removed is not None:
        ledger.release_many(item_id, removed.quantity)
    return {"ok": True, "cart": _cart_out(cart)}


@router.delete("", summary="Clear cart")
async def clear_cart(cart: CartStore = Depends(get_cart)):
    cart.clear()
    return {"ok": True, "cart": _cart_out(cart)}


@router.post("/checkout", summary="Start checkout for the cart")
async def checkout_cart(
    cart: CartStore = Depends(get_cart),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
    site_url: str = Depends(get_site_url),
):
    try:
        session = await orchestrator.checkout_cart(cart, origin=site_url)
    except StorefrontError as e:
        return failure_response(e)
    return CheckoutOut(url=session.url, session_id=session.id or None)
