"""
Payment service exceptions.

Each exception carries the HTTP status and short error code the API answers
with, so endpoints can turn any of them into a response without a lookup table.
"""
from typing import Optional


class PaymentError(Exception):
    """Base exception for payment service errors"""
    status_code: int = 500
    error: str = "payment_error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.error)
        self.detail = detail

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.detail:
            body["detail"] = self.detail
        return body


class InvalidRequest(PaymentError):
    """Raised when required input is missing or malformed"""
    status_code = 400
    error = "invalid_request"


class InvalidSignature(PaymentError):
    """Raised when a payment or webhook signature does not match"""
    status_code = 400
    error = "invalid_signature"


class UpstreamError(PaymentError):
    """Raised when a Razorpay API call fails"""
    status_code = 500
    error = "upstream_error"


class OrderCreationFailed(UpstreamError):
    """Raised when Razorpay refuses or fails to create an order"""
    error = "create-order-failed"


class PersistenceError(PaymentError):
    """Raised when a document store write fails"""
    status_code = 500
    error = "persistence_error"
