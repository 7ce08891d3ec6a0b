import razorpay
import logging
from typing import Any, Dict, Optional
from fastapi.concurrency import run_in_threadpool
from app.core.config import Settings
from app.services.exceptions import UpstreamError

logger = logging.getLogger(__name__)

class PaymentProcessor:
    """
    Thin async wrapper over the Razorpay SDK.

    The SDK is blocking (requests based) so every call is pushed to the
    threadpool. Failures surface as UpstreamError with the SDK message.
    """

    def __init__(self, key_id: str, key_secret: str, client: Optional[razorpay.Client] = None):
        self.key_id = key_id
        if client is not None:
            self.client = client
        elif key_id and key_secret:
            self.client = razorpay.Client(auth=(key_id, key_secret))
        else:
            self.client = None
            logger.warning("Razorpay keys not set. Payment operations will fail.")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentProcessor":
        return cls(settings.RZP_KEY_ID, settings.RZP_KEY_SECRET)

    def _require_client(self) -> razorpay.Client:
        if not self.client:
            raise UpstreamError("Razorpay client not initialized")
        return self.client

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        capture_mode: int,
        notes: Dict[str, str],
    ) -> Dict[str, Any]:
        client = self._require_client()
        data = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": capture_mode,
            "notes": notes,
        }
        try:
            return await run_in_threadpool(client.order.create, data=data)
        except Exception as e:
            logger.error(f"Error creating Razorpay order: {e}")
            raise UpstreamError(str(e)) from e

    async def capture_payment(self, payment_id: str, amount: int, currency: str) -> Dict[str, Any]:
        client = self._require_client()
        try:
            return await run_in_threadpool(client.payment.capture, payment_id, amount, {"currency": currency})
        except Exception as e:
            raise UpstreamError(str(e)) from e
