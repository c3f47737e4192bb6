from typing import Optional


class StorefrontError(Exception):
    kind = "error"


class InvalidAmount(StorefrontError):
    """A price could not be reduced to a positive integer amount of cents."""

    kind = "invalid_amount"


class InvalidLineItem(StorefrontError):
    kind = "invalid_line_item"


class StorageCorrupt(StorefrontError):
    """Raised while parsing a stored blob; always absorbed by the store that reads it."""

    kind = "storage_corrupt"


class CartNotReady(StorefrontError):
    """Cart contents were read before the hydration pass finished."""

    kind = "cart_not_ready"


class CheckoutError(StorefrontError):
    kind = "checkout_failed"


class EmptyCart(CheckoutError):
    kind = "empty_cart"


class CollaboratorFailure(CheckoutError):
    """The payment collaborator rejected the request or answered with something unusable."""

    kind = "collaborator_failure"

    def __init__(self, message: str, type: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.type = type
        self.code = code


class TransportFailure(CheckoutError):
    """Network error or timeout talking to the payment collaborator. Retryable."""

    kind = "transport_failure"
