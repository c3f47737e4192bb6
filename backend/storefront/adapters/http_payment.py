import logging
from typing import Optional, Sequence

import httpx

from storefront.adapters.payment_gateway import PaymentGateway, payload_for
from storefront.exceptions import CollaboratorFailure, TransportFailure
from storefront.models.checkout_session import CheckoutSession
from storefront.models.line_item import CheckoutLine

logger = logging.getLogger("payment")


class HttpPaymentGateway(PaymentGateway):
    """
    Talks to a remote checkout endpoint:
        request:  {"items": [...]}
        response: {"ok": true, "url": "..."} or {"ok": false, "error": "...", "type"?, "code"?}
    """

    name = "http"

    def __init__(self, url: str, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def create_session(self, items: Sequence[CheckoutLine]) -> CheckoutSession:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                res = await client.post(self.url, json={"items": payload_for(items)})
        except httpx.TimeoutException as e:
            raise TransportFailure("Payment processor timed out") from e
        except httpx.TransportError as e:
            raise TransportFailure(f"Could not reach payment processor: {e}") from e

        try:
            data = res.json()
        except ValueError:
            logger.warning("non-JSON checkout response (%s): %.200s", res.status_code, res.text)
            raise CollaboratorFailure(f"Checkout failed ({res.status_code})")
        if not isinstance(data, dict):
            raise CollaboratorFailure(f"Checkout failed ({res.status_code})")

        if not res.is_success or not data.get("ok"):
            code = data.get("code")
            raise CollaboratorFailure(
                str(data.get("error") or f"Checkout failed ({res.status_code})"),
                type=data.get("type"),
                code=str(code) if code is not None else None,
            )

        url = data.get("url")
        if not url or not isinstance(url, str):
            raise CollaboratorFailure("No URL in response")
        return CheckoutSession(id=str(data.get("id") or ""), url=url)
