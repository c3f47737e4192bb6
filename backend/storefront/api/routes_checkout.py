from fastapi import APIRouter, Depends

from storefront.api.deps import get_orchestrator, get_site_url
from storefront.api.errors import failure_response
from storefront.exceptions import StorefrontError
from storefront.schemas.cart_schema import CheckoutIn, CheckoutOut
from storefront.services.checkout import CheckoutOrchestrator

router = APIRouter(tags=["checkout"])


@router.post("/api/checkout", summary="Checkout ad-hoc items")
async def checkout(
    payload: CheckoutIn,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
    site_url: str = Depends(get_site_url),
):
    """
    payload: {"items": [{"priceId": "price_123", "quantity": 2},
                        {"name": "Candle", "unitAmount": 18, "image": "/img/candle.jpg"}]}
    """
    try:
        session = await orchestrator.checkout_ad_hoc(payload.items, origin=payload.origin or site_url)
    except StorefrontError as e:
        return failure_response(e)
    return CheckoutOut(url=session.url, session_id=session.id or None)
