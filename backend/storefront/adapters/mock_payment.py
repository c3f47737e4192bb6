import asyncio
import random
from typing import List, Optional, Sequence
from uuid import uuid4

from storefront.adapters.payment_gateway import PaymentGateway, payload_for
from storefront.exceptions import CheckoutError, TransportFailure
from storefront.models.checkout_session import CheckoutSession
from storefront.models.line_item import CheckoutLine


class MockPaymentGateway(PaymentGateway):
    """
    Simulated hosted-checkout provider.

    Every request is recorded in `requests` so callers can assert what was
    (or wasn't) sent. Set `fail_with` to make every call raise that error.
    """

    name = "mock"

    def __init__(
        self,
        delay_ms: int = 200,
        base_url: str = "https://checkout.mock/pay",
        transient_failure_rate: float = 0.0,
        fail_with: Optional[CheckoutError] = None,
    ):
        self.delay_seconds = delay_ms / 1000.0
        self.base_url = base_url.rstrip("/")
        self.transient_failure_rate = transient_failure_rate
        self.fail_with = fail_with
        self.requests: List[List[dict]] = []

    async def create_session(self, items: Sequence[CheckoutLine]) -> CheckoutSession:
        self.requests.append(payload_for(items))

        # Simulate network latency / gateway processing
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if self.fail_with is not None:
            raise self.fail_with

        if self.transient_failure_rate and random.random() < self.transient_failure_rate:
            raise TransportFailure("Simulated transient gateway error")

        session_id = f"cs_mock_{uuid4().hex}"
        return CheckoutSession(id=session_id, url=f"{self.base_url}/{session_id}")
