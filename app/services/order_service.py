import time
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from app.core.processor import PaymentProcessor
from app.core.supabase import DocumentStore
from app.schemas.payment import Order
from app.services.exceptions import InvalidRequest, OrderCreationFailed, UpstreamError
from app.services.result import Result

logger = logging.getLogger(__name__)

CURRENCY = "INR"

def default_receipt() -> str:
    return f"rcpt_{int(time.time() * 1000)}"

def is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0

class OrderService:
    def __init__(self, processor: PaymentProcessor, store: DocumentStore, capture_mode: int, collection: str = "razorpay-orders"):
        self.processor = processor
        self.store = store
        self.capture_mode = capture_mode
        self.collection = collection

    async def create_order(
        self,
        amount_in_paise: int,
        receipt: Optional[str] = None,
        notes: Optional[Dict[str, str]] = None,
    ) -> Tuple[Order, Result]:
        """
        Creates a Razorpay order and records it.

        Returns the order and the outcome of the best-effort store write.
        A store failure never fails the call; the caller already has a
        usable order from Razorpay at that point.
        """
        if not is_positive_int(amount_in_paise):
            raise InvalidRequest("amountInPaise (number) required (paise)")

        receipt = receipt or default_receipt()
        notes = notes or {}

        try:
            payload = await self.processor.create_order(
                amount=amount_in_paise,
                currency=CURRENCY,
                receipt=receipt,
                capture_mode=self.capture_mode,
                notes=notes,
            )
        except UpstreamError as e:
            raise OrderCreationFailed(e.detail) from e

        created_at = datetime.now(timezone.utc)
        order = Order(
            id=payload["id"],
            amount=payload.get("amount", amount_in_paise),
            currency=payload.get("currency", CURRENCY),
            receipt=payload.get("receipt") or receipt,
            capture_mode=self.capture_mode,
            notes=notes,
            created_at=created_at,
            payload=payload,
        )
        logger.info(f"Created Razorpay order {order.id} for {order.amount} {order.currency}")

        persisted = await self._record(order)
        return order, persisted

    async def _record(self, order: Order) -> Result:
        if not self.store.enabled:
            return Result.skipped("document store disabled")
        try:
            await self.store.set(
                self.collection,
                order.id,
                {
                    "order": order.payload,
                    "notes": order.notes,
                    "createdAt": order.created_at.isoformat(),
                },
            )
        except Exception as e:
            logger.warning(f"Failed to record order {order.id}: {e}")
            return Result.best_effort_failed(str(e))
        return Result.ok()
