from fastapi.responses import JSONResponse

from storefront.exceptions import (
    CartNotReady,
    CollaboratorFailure,
    EmptyCart,
    InvalidAmount,
    InvalidLineItem,
    StorefrontError,
    TransportFailure,
)

STATUS_BY_ERROR = [
    (InvalidAmount, 400),
    (InvalidLineItem, 400),
    (EmptyCart, 400),
    (CartNotReady, 409),
    (CollaboratorFailure, 502),
    (TransportFailure, 503),
]


def failure_response(exc: StorefrontError) -> JSONResponse:
    """{ok: false, error, kind, type?, code?} with a status matching the error."""
    status = next((code for cls, code in STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    body = {"ok": False, "error": str(exc) or exc.kind, "kind": exc.kind}
    if getattr(exc, "type", None):
        body["type"] = exc.type
    if getattr(exc, "code", None):
        body["code"] = exc.code
    return JSONResponse(body, status_code=status)
