# storefront/domain/errors.py
"""Error taxonomy shared by the core services and the HTTP adapters.

Callers branch on ``kind`` (and ``retryable``), never on message text.
"""
from enum import Enum


class ErrorKind(str, Enum):
    TRANSIENT = "transient"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"
    PAYMENT_NOT_COMPLETED = "payment_not_completed"
    CART_MISSING_OR_EMPTY = "cart_missing_or_empty"
    ORDER_NOT_CANCELLABLE = "order_not_cancellable"
    INVALID_TRANSITION = "invalid_transition"
    AUTHENTICATION_FAILED = "authentication_failed"
    CONFLICT = "conflict"


class StorefrontError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION
    retryable: bool = False
    message = "Request could not be processed"

    def __init__(self, message: str | None = None, **context):
        self.detail = message or self.message
        self.context = context
        super().__init__(self.detail)


# transient / retryable

class TransientError(StorefrontError):
    kind = ErrorKind.TRANSIENT
    retryable = True
    message = "Temporary failure, please retry"


class StorageUnavailable(TransientError):
    message = "Storage is temporarily unavailable"


class GuestSessionUnavailable(TransientError):
    message = "Failed to create session. Please try again."


class PaymentProviderUnavailable(TransientError):
    message = "Payment provider did not respond in time"


# validation

class ValidationFailed(StorefrontError):
    kind = ErrorKind.VALIDATION


class InvalidQuantity(ValidationFailed):
    message = "Quantity must be a positive integer"


class UnknownVariant(ValidationFailed):
    message = "Selected variant not available"


class WebhookSignatureInvalid(ValidationFailed):
    message = "Invalid signature"


# not found

class NotFound(StorefrontError):
    kind = ErrorKind.NOT_FOUND
    message = "Not found"


class CartNotFound(NotFound):
    message = "Cart not found"


class CartLineNotFound(NotFound):
    message = "Cart item not found"


class OrderNotFound(NotFound):
    message = "Order not found"


class ProductNotFound(NotFound):
    message = "Product not found"


class AddressNotFound(NotFound):
    message = "Address not found"


# preconditions

class NotAuthorized(StorefrontError):
    kind = ErrorKind.NOT_AUTHORIZED
    message = "Not authorized"


class AuthenticationFailed(StorefrontError):
    kind = ErrorKind.AUTHENTICATION_FAILED
    message = "Invalid email or password."


class EmailAlreadyRegistered(StorefrontError):
    kind = ErrorKind.CONFLICT
    message = "An account with this email already exists. Please sign in instead."


class PaymentNotCompleted(StorefrontError):
    kind = ErrorKind.PAYMENT_NOT_COMPLETED
    message = "Could not verify payment for this checkout session"


class CartMissingOrEmpty(StorefrontError):
    kind = ErrorKind.CART_MISSING_OR_EMPTY
    message = "Cart was empty or could not be found"


class OrderNotCancellable(StorefrontError):
    kind = ErrorKind.ORDER_NOT_CANCELLABLE
    message = "Order can no longer be cancelled"


class InvalidStatusTransition(StorefrontError):
    kind = ErrorKind.INVALID_TRANSITION
    message = "Illegal order status transition"
