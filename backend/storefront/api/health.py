from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", tags=["health"])
def health(request: Request):
    state = request.app.state
    try:
        store_ok = state.store.health_check()
    except Exception:
        store_ok = False
    try:
        payment_ok = state.orchestrator.gateway.health_check()
    except Exception:
        payment_ok = False

    return {
        "status": "ok" if store_ok and payment_ok else "degraded",
        "store": store_ok,
        "payment_adapter": payment_ok,
        "payment_provider": state.orchestrator.gateway.name,
        "cart_ready": state.cart.ready,
    }
