import asyncio
import logging
from typing import Sequence

import stripe

from storefront.adapters.payment_gateway import PaymentGateway, payload_for
from storefront.exceptions import CollaboratorFailure, TransportFailure
from storefront.models.checkout_session import CheckoutSession
from storefront.models.line_item import CheckoutLine

logger = logging.getLogger("payment")


class StripePaymentGateway(PaymentGateway):
    """Hosted Stripe Checkout in payment mode."""

    name = "stripe"

    def __init__(self, api_key: str, site_url: str):
        self.api_key = api_key
        self.site_url = site_url.rstrip("/")

    def session_params(self, items: Sequence[CheckoutLine]) -> dict:
        return {
            "mode": "payment",
            "line_items": payload_for(items),
            "allow_promotion_codes": True,
            "billing_address_collection": "auto",
            "success_url": f"{self.site_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.site_url}/cancel",
        }

    async def create_session(self, items: Sequence[CheckoutLine]) -> CheckoutSession:
        if not self.api_key:
            raise CollaboratorFailure("Missing STRIPE_SECRET_KEY")

        params = self.session_params(items)
        try:
            # stripe's client is blocking; keep it off the event loop
            session = await asyncio.to_thread(stripe.checkout.Session.create, api_key=self.api_key, **params)
        except stripe.APIConnectionError as e:
            logger.warning("stripe unreachable: %s", e)
            raise TransportFailure(e.user_message or "Could not reach payment processor") from e
        except stripe.StripeError as e:
            err = getattr(e, "error", None)
            raise CollaboratorFailure(
                e.user_message or str(e) or "Checkout failed",
                type=getattr(err, "type", None) or type(e).__name__,
                code=e.code,
            ) from e

        url = getattr(session, "url", None)
        if not url:
            raise CollaboratorFailure("No URL in checkout session")
        return CheckoutSession(id=getattr(session, "id", "") or "", url=url)

    def health_check(self) -> bool:
        return bool(self.api_key)
