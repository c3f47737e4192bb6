from fastapi import Request

from storefront.services.cart_store import CartStore
from storefront.services.checkout import CheckoutOrchestrator
from storefront.services.reservation_ledger import InventoryReservationLedger


def get_cart(request: Request) -> CartStore:
    return request.app.state.cart


def get_ledger(request: Request) -> InventoryReservationLedger:
    return request.app.state.ledger


def get_orchestrator(request: Request) -> CheckoutOrchestrator:
    return request.app.state.orchestrator


def get_site_url(request: Request) -> str:
    return request.app.state.settings.SITE_URL
