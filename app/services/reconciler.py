import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel
from app.core.config import Settings
from app.core.processor import PaymentProcessor
from app.core.security import verify_payment_signature, verify_webhook_signature
from app.core.supabase import DocumentStore
from app.services.exceptions import InvalidRequest, PersistenceError, UpstreamError
from app.services.order_service import CURRENCY, is_positive_int
from app.services.result import Result

logger = logging.getLogger(__name__)

PAYMENT_CAPTURED = "payment.captured"


class VerificationResult(BaseModel):
    order_id: str
    payment_id: str
    verified: bool = True
    capture: Result


class WebhookResult(BaseModel):
    event: Optional[str] = None
    recorded: Result


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PaymentReconciler:
    """
    Turns verified payment confirmations into store state.

    Two trust boundaries: the client-side checkout confirmation, signed with
    the API key secret, and the server-to-server webhook, signed with the
    webhook secret. Nothing is written until the signature checks out.
    """

    def __init__(self, settings: Settings, processor: PaymentProcessor, store: DocumentStore):
        self.key_secret = settings.RZP_KEY_SECRET
        self.webhook_secret = settings.RZP_WEBHOOK_SECRET
        self.manual_capture = settings.manual_capture
        self.orders_collection = settings.ORDERS_COLLECTION
        self.members_collection = settings.MEMBERS_COLLECTION
        self.webhooks_collection = settings.WEBHOOKS_COLLECTION
        self.processor = processor
        self.store = store

    async def verify_payment(
        self,
        payment_id: str,
        order_id: str,
        signature: str,
        amount_in_paise: Any = None,
        member: Optional[Dict[str, Any]] = None,
    ) -> VerificationResult:
        if not payment_id or not order_id or not signature:
            raise InvalidRequest("payment_id, order_id, signature required")

        # 1. Verify Signature
        verify_payment_signature(self.key_secret, order_id, payment_id, signature)

        # 2. Capture manually if the order was created with payment_capture=0
        capture = await self._capture(payment_id, amount_in_paise)

        # 3. Record verification and update the member
        if self.store.enabled:
            try:
                await self.store.set(
                    self.orders_collection,
                    order_id,
                    {
                        "paymentId": payment_id,
                        "verified": True,
                        "verifiedAt": _now(),
                        "member": member or None,
                    },
                    merge=True,
                )
                member_id = (member or {}).get("memberId")
                if member_id:
                    await self.store.set(
                        self.members_collection,
                        str(member_id),
                        {
                            "paymentStatus": "Success",
                            "razorpay": {"order_id": order_id, "payment_id": payment_id},
                        },
                        merge=True,
                    )
            except Exception as e:
                logger.error(f"Failed to record verification for order {order_id}: {e}")
                raise PersistenceError(str(e)) from e

        logger.info(f"Verified payment {payment_id} for order {order_id}")
        return VerificationResult(order_id=order_id, payment_id=payment_id, capture=capture)

    async def _capture(self, payment_id: str, amount_in_paise: Any) -> Result:
        if not self.manual_capture:
            return Result.skipped("automatic capture")
        if not is_positive_int(amount_in_paise):
            return Result.skipped("no amount given")
        try:
            payment = await self.processor.capture_payment(payment_id, amount_in_paise, CURRENCY)
        except UpstreamError as e:
            # Usually the payment was already captured elsewhere.
            logger.warning(f"capture error (may already be captured): {e.detail}")
            return Result.best_effort_failed(e.detail or "capture failed")
        return Result.ok(payment)

    async def handle_webhook(
        self,
        raw_body: bytes,
        signature: Optional[str],
        parsed_body: Optional[Dict[str, Any]] = None,
    ) -> WebhookResult:
        """
        Processes a Razorpay webhook delivery.

        The signature is checked against `raw_body` exactly as received.
        Only payment.captured is recorded, keyed by the payment id, so a
        redelivery overwrites the same document. Other events are accepted
        and ignored.
        """
        verify_webhook_signature(self.webhook_secret, raw_body, signature)

        if parsed_body is None:
            try:
                parsed_body = json.loads(raw_body)
            except ValueError as e:
                raise InvalidRequest("webhook body is not valid JSON") from e
        if not isinstance(parsed_body, dict):
            raise InvalidRequest("webhook body must be a JSON object")

        event = parsed_body.get("event")
        if event != PAYMENT_CAPTURED:
            logger.info(f"Ignoring webhook event {event}")
            return WebhookResult(event=event, recorded=Result.skipped("unhandled event"))

        try:
            entity = parsed_body["payload"]["payment"]["entity"]
            payment_id = entity["id"]
        except (KeyError, TypeError) as e:
            raise InvalidRequest("payload.payment.entity.id missing") from e

        if not self.store.enabled:
            return WebhookResult(event=event, recorded=Result.skipped("document store disabled"))

        try:
            await self.store.set(
                self.webhooks_collection,
                str(payment_id),
                {"event": event, "payload": entity, "createdAt": _now()},
            )
        except Exception as e:
            logger.error(f"Failed to record webhook for payment {payment_id}: {e}")
            raise PersistenceError(str(e)) from e

        logger.info(f"Recorded {event} for payment {payment_id}")
        return WebhookResult(event=event, recorded=Result.ok())
