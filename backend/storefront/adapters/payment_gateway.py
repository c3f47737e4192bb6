from typing import List, Sequence

from storefront.models.checkout_session import CheckoutSession
from storefront.models.line_item import CheckoutLine


class PaymentGateway:
    """
    The external service that turns a line-item manifest into a hosted
    payment page.

    create_session returns a CheckoutSession carrying the redirect URL, or
    raises CollaboratorFailure (rejected / malformed) or TransportFailure
    (network, timeout).
    """

    name = "base"

    async def create_session(self, items: Sequence[CheckoutLine]) -> CheckoutSession:
        raise NotImplementedError

    def health_check(self) -> bool:
        return True


def payload_for(items: Sequence[CheckoutLine]) -> List[dict]:
    return [item.to_payload() for item in items]


def build_gateway(settings) -> PaymentGateway:
    provider = (settings.PAYMENT_PROVIDER or "mock").lower()
    if provider == "stripe":
        from storefront.adapters.stripe_payment import StripePaymentGateway

        return StripePaymentGateway(api_key=settings.STRIPE_SECRET_KEY, site_url=settings.SITE_URL)
    if provider == "http":
        from storefront.adapters.http_payment import HttpPaymentGateway

        if not settings.PAYMENT_HTTP_URL:
            raise ValueError("PAYMENT_HTTP_URL is required when PAYMENT_PROVIDER=http")
        return HttpPaymentGateway(settings.PAYMENT_HTTP_URL, timeout=settings.PAYMENT_TIMEOUT_SECONDS)
    if provider == "mock":
        from storefront.adapters.mock_payment import MockPaymentGateway

        return MockPaymentGateway(delay_ms=settings.PAYMENT_MOCK_DELAY_MS)
    raise ValueError(f"Unknown PAYMENT_PROVIDER: {settings.PAYMENT_PROVIDER!r}")
