"""Failure kinds surfaced by the Commerce domain.

Field-level input problems keep using Protean's ``ValidationError``; the
classes here cover the business failures callers need to tell apart. Each one
carries a stable ``kind`` and the HTTP status the API layer answers with.
"""


class CommerceError(Exception):
    kind = "CommerceError"
    status_code = 400

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(CommerceError):
    kind = "NotFound"
    status_code = 404


class UnauthorizedError(CommerceError):
    """The caller does not own the resource or lacks the role for it."""

    kind = "Unauthorized"
    status_code = 401


class InvalidStateError(CommerceError):
    kind = "InvalidState"
    status_code = 409


class EmptyCartError(CommerceError):
    kind = "EmptyCart"
    status_code = 400

    def __init__(self, message: str = "No items in cart") -> None:
        super().__init__(message)


class InsufficientStockError(CommerceError):
    kind = "InsufficientStock"
    status_code = 400

    def __init__(self, product_id: str, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for {product_name}. Only {available} available",
            product_id=str(product_id),
            available=available,
            requested=requested,
        )
        self.product_id = str(product_id)
        self.product_name = product_name
        self.available = available
        self.requested = requested


class GatewayError(CommerceError):
    """The payment provider rejected or failed a call."""

    kind = "GatewayError"
    status_code = 502


class SignatureVerificationError(GatewayError):
    """A webhook payload did not carry a valid provider signature."""

    status_code = 400
