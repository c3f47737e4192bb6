import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from storefront.adapters.payment_gateway import PaymentGateway
from storefront.exceptions import (
    CheckoutError,
    CollaboratorFailure,
    EmptyCart,
    StorefrontError,
    TransportFailure,
)
from storefront.models.checkout_session import CheckoutSession
from storefront.models.line_item import CheckoutLine
from storefront.services.cart_store import CartStore
from storefront.services.line_items import LineItemBuilder

log = logging.getLogger("checkout")


class CheckoutState(str, enum.Enum):
    IDLE = "idle"
    BUILDING = "building"
    AWAITING_SESSION = "awaiting_session"
    REDIRECTING = "redirecting"
    FAILED = "failed"


_ALLOWED = {
    CheckoutState.IDLE: {CheckoutState.BUILDING, CheckoutState.FAILED},
    CheckoutState.BUILDING: {CheckoutState.AWAITING_SESSION, CheckoutState.FAILED},
    CheckoutState.AWAITING_SESSION: {CheckoutState.REDIRECTING, CheckoutState.FAILED},
    CheckoutState.REDIRECTING: set(),
    CheckoutState.FAILED: set(),
}


@dataclass
class CheckoutAttempt:
    state: CheckoutState = CheckoutState.IDLE
    history: List[CheckoutState] = field(default_factory=lambda: [CheckoutState.IDLE])
    line_items: Sequence[CheckoutLine] = ()
    session: Optional[CheckoutSession] = None
    error: Optional[StorefrontError] = None

    def move(self, state: CheckoutState) -> None:
        if state not in _ALLOWED[self.state]:
            raise RuntimeError(f"illegal checkout transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def fail(self, error: StorefrontError) -> StorefrontError:
        self.error = error
        self.move(CheckoutState.FAILED)
        return error

    @property
    def url(self) -> Optional[str]:
        return self.session.url if self.session else None


class CheckoutOrchestrator:
    """
    Runs one checkout attempt at a time:

        idle -> building -> awaiting_session -> redirecting
        idle / building / awaiting_session -> failed

    Each call starts a fresh attempt, so a failed checkout is retried simply
    by calling again. The cart is never cleared here; that happens when the
    order is confirmed after payment.
    """

    def __init__(self, gateway: PaymentGateway, builder: Optional[LineItemBuilder] = None):
        self.gateway = gateway
        self.builder = builder or LineItemBuilder()
        self.last_attempt: Optional[CheckoutAttempt] = None

    @property
    def state(self) -> CheckoutState:
        return self.last_attempt.state if self.last_attempt else CheckoutState.IDLE

    async def checkout_cart(self, cart: CartStore, origin: Optional[str] = None) -> CheckoutSession:
        attempt = self._begin()
        try:
            items = cart.items
        except StorefrontError as e:
            raise attempt.fail(e)
        if not items:
            raise attempt.fail(EmptyCart("Cart is empty"))
        return await self._run(attempt, lambda: self.builder.build(items, origin))

    async def checkout_ad_hoc(self, raw_items: list, origin: Optional[str] = None) -> CheckoutSession:
        attempt = self._begin()
        if not isinstance(raw_items, list) or not raw_items:
            raise attempt.fail(EmptyCart("No items provided"))
        return await self._run(attempt, lambda: self.builder.build_from_ad_hoc(raw_items, origin))

    def _begin(self) -> CheckoutAttempt:
        self.last_attempt = CheckoutAttempt()
        return self.last_attempt

    async def _run(self, attempt: CheckoutAttempt, build: Callable[[], Sequence[CheckoutLine]]) -> CheckoutSession:
        attempt.move(CheckoutState.BUILDING)
        try:
            attempt.line_items = tuple(build())
        except StorefrontError as e:
            log.warning("checkout aborted while building line items: %s", e)
            raise attempt.fail(e)

        attempt.move(CheckoutState.AWAITING_SESSION)
        try:
            session = await self.gateway.create_session(attempt.line_items)
        except CheckoutError as e:
            log.warning(
                "checkout failed kind=%s type=%s code=%s: %s",
                e.kind, getattr(e, "type", None), getattr(e, "code", None), e,
            )
            raise attempt.fail(e)
        except (OSError, TimeoutError) as e:
            log.warning("checkout transport error: %s", e)
            raise attempt.fail(TransportFailure(str(e) or "Payment processor unreachable"))
        except Exception as e:
            log.exception("unexpected payment collaborator error")
            raise attempt.fail(CollaboratorFailure(str(e) or "Checkout failed", type=type(e).__name__))

        if session is None or not session.url:
            raise attempt.fail(CollaboratorFailure("No URL in response"))

        attempt.session = session
        attempt.move(CheckoutState.REDIRECTING)
        log.info("checkout session %s ready for %d line(s)", session.id or "-", len(attempt.line_items))
        return session
