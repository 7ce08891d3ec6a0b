import logging
from typing import Optional
from razorpay.errors import SignatureVerificationError
from razorpay.utility import Utility
from app.services.exceptions import InvalidSignature

logger = logging.getLogger(__name__)

# Signature checks need no API credentials, so no client is attached.
utility = Utility()

def verify(secret: str, message: str, candidate_signature: Optional[str]) -> bool:
    """
    True when `candidate_signature` is the hex HMAC-SHA256 of `message`
    keyed by `secret`. Razorpay's Utility does the digest and the
    constant-time compare.
    """
    if not candidate_signature or not isinstance(candidate_signature, str):
        return False
    if not candidate_signature.isascii():
        # compare_digest raises TypeError on non-ASCII str
        return False
    try:
        return utility.verify_signature(message, candidate_signature, secret)
    except SignatureVerificationError:
        return False

def verify_payment_signature(key_secret: str, order_id: str, payment_id: str, signature: str) -> None:
    """
    Checks the signature Razorpay Checkout hands to the client after payment.

    Razorpay signs "{order_id}|{payment_id}" with the API key secret.
    Raises InvalidSignature on mismatch.
    """
    if not verify(key_secret, f"{order_id}|{payment_id}", signature):
        logger.warning(f"Payment signature mismatch for order {order_id}")
        raise InvalidSignature("invalid signature")

def verify_webhook_signature(webhook_secret: str, raw_body: bytes, signature: Optional[str]) -> None:
    """
    Checks the X-Razorpay-Signature header against the exact request bytes.

    The body must not be re-serialized before this call. An empty webhook
    secret rejects every request.
    """
    if not webhook_secret:
        logger.error("RZP_WEBHOOK_SECRET is not set; rejecting webhook")
        raise InvalidSignature("webhook secret not configured")
    try:
        body = raw_body.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Webhook body is not valid UTF-8")
        raise InvalidSignature("invalid signature")
    if not verify(webhook_secret, body, signature):
        logger.warning("Webhook signature mismatch")
        raise InvalidSignature("invalid signature")
