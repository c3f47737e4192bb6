import asyncio

import pytest

from storefront.adapters.mock_payment import MockPaymentGateway
from storefront.adapters.payment_gateway import PaymentGateway
from storefront.exceptions import (
    CartNotReady,
    CollaboratorFailure,
    EmptyCart,
    InvalidAmount,
    InvalidLineItem,
    TransportFailure,
)
from storefront.models.checkout_session import CheckoutSession
from storefront.services.cart_store import CartStore
from storefront.services.checkout import CheckoutOrchestrator, CheckoutState
from storefront.services.line_items import LineItemBuilder

CANDLE = {"id": "candle-1", "name": "Forest Ember", "unit_price": 2500, "image": "/images/candle.jpg"}


def run(coro):
    return asyncio.run(coro)


def make_cart(backend):
    return CartStore(backend.context()).hydrate()


def test_empty_cart_fails_fast_without_network(backend, gateway):
    orchestrator = CheckoutOrchestrator(gateway)
    with pytest.raises(EmptyCart):
        run(orchestrator.checkout_cart(make_cart(backend)))
    assert gateway.requests == []
    assert orchestrator.state == CheckoutState.FAILED
    assert orchestrator.last_attempt.history == [CheckoutState.IDLE, CheckoutState.FAILED]


def test_successful_checkout_redirects_and_keeps_cart(backend, gateway):
    cart = make_cart(backend)
    cart.add(CANDLE, 2)
    orchestrator = CheckoutOrchestrator(gateway, LineItemBuilder("https://shop.test"))

    session = run(orchestrator.checkout_cart(cart))

    assert session.url.startswith("https://checkout.mock/pay/cs_mock_")
    attempt = orchestrator.last_attempt
    assert attempt.history == [
        CheckoutState.IDLE,
        CheckoutState.BUILDING,
        CheckoutState.AWAITING_SESSION,
        CheckoutState.REDIRECTING,
    ]
    assert attempt.url == session.url
    sent = gateway.requests[0][0]
    assert sent["quantity"] == 2
    assert sent["price_data"]["unit_amount"] == 2500
    assert sent["price_data"]["product_data"]["images"] == ["https://shop.test/images/candle.jpg"]
    # the cart is only cleared once payment is confirmed
    assert cart.count == 2


def test_invalid_item_aborts_before_gateway(gateway):
    orchestrator = CheckoutOrchestrator(gateway)
    with pytest.raises(InvalidLineItem) as exc:
        run(orchestrator.checkout_ad_hoc([{"name": "Candle", "unitAmount": 0}]))
    assert "Candle" in str(exc.value)
    assert orchestrator.last_attempt.error is exc.value
    assert orchestrator.last_attempt.history == [CheckoutState.IDLE, CheckoutState.BUILDING, CheckoutState.FAILED]
    assert gateway.requests == []


def test_ad_hoc_without_items_is_empty(gateway):
    orchestrator = CheckoutOrchestrator(gateway)
    with pytest.raises(EmptyCart):
        run(orchestrator.checkout_ad_hoc([]))
    with pytest.raises(EmptyCart):
        run(orchestrator.checkout_ad_hoc(None))


def test_collaborator_failure_is_surfaced_verbatim(backend):
    failure = CollaboratorFailure("Your card was declined.", type="card_error", code="card_declined")
    gateway = MockPaymentGateway(delay_ms=0, fail_with=failure)
    cart = make_cart(backend)
    cart.add(CANDLE)
    orchestrator = CheckoutOrchestrator(gateway)

    with pytest.raises(CollaboratorFailure) as exc:
        run(orchestrator.checkout_cart(cart))
    assert exc.value is failure
    assert exc.value.code == "card_declined"
    assert orchestrator.last_attempt.history[-2:] == [CheckoutState.AWAITING_SESSION, CheckoutState.FAILED]


def test_retry_after_failure_starts_fresh(backend):
    gateway = MockPaymentGateway(delay_ms=0, fail_with=TransportFailure("timed out"))
    cart = make_cart(backend)
    cart.add(CANDLE)
    orchestrator = CheckoutOrchestrator(gateway)

    with pytest.raises(TransportFailure):
        run(orchestrator.checkout_cart(cart))
    failed = orchestrator.last_attempt

    gateway.fail_with = None
    session = run(orchestrator.checkout_cart(cart))
    assert orchestrator.state == CheckoutState.REDIRECTING
    assert orchestrator.last_attempt is not failed
    assert orchestrator.last_attempt.history[0] == CheckoutState.IDLE
    assert session.url
    assert len(gateway.requests) == 2


class ExplodingGateway(PaymentGateway):
    def __init__(self, error):
        self.error = error

    async def create_session(self, items):
        raise self.error


class UrlLessGateway(PaymentGateway):
    async def create_session(self, items):
        return CheckoutSession(url="")


def test_unexpected_gateway_errors_become_collaborator_failures(backend):
    cart = make_cart(backend)
    cart.add(CANDLE)
    orchestrator = CheckoutOrchestrator(ExplodingGateway(KeyError("url")))
    with pytest.raises(CollaboratorFailure) as exc:
        run(orchestrator.checkout_cart(cart))
    assert exc.value.type == "KeyError"


def test_socket_errors_become_transport_failures(backend):
    cart = make_cart(backend)
    cart.add(CANDLE)
    orchestrator = CheckoutOrchestrator(ExplodingGateway(ConnectionResetError("reset")))
    with pytest.raises(TransportFailure):
        run(orchestrator.checkout_cart(cart))


def test_missing_url_is_a_failure(backend):
    cart = make_cart(backend)
    cart.add(CANDLE)
    orchestrator = CheckoutOrchestrator(UrlLessGateway())
    with pytest.raises(CollaboratorFailure):
        run(orchestrator.checkout_cart(cart))
    assert orchestrator.state == CheckoutState.FAILED


def test_unhydrated_cart_cannot_checkout(backend, gateway):
    orchestrator = CheckoutOrchestrator(gateway)
    with pytest.raises(CartNotReady):
        run(orchestrator.checkout_cart(CartStore(backend.context())))
    assert orchestrator.state == CheckoutState.FAILED
    assert gateway.requests == []


def test_out_of_range_ad_hoc_amount_fails_cleanly(gateway):
    orchestrator = CheckoutOrchestrator(gateway)
    with pytest.raises(InvalidLineItem):
        run(orchestrator.checkout_ad_hoc([{"name": "Candle", "unitAmount": 1e30}]))
    assert orchestrator.state == CheckoutState.FAILED
    assert gateway.requests == []


def test_out_of_range_cart_price_fails_cleanly(backend, gateway):
    cart = make_cart(backend)
    cart.add(CANDLE | {"unit_price": 10**40})
    orchestrator = CheckoutOrchestrator(gateway)
    with pytest.raises(InvalidAmount):
        run(orchestrator.checkout_cart(cart))
    assert orchestrator.last_attempt.history == [CheckoutState.IDLE, CheckoutState.BUILDING, CheckoutState.FAILED]
    assert gateway.requests == []
