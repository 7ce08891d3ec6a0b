from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from app.api.deps import get_order_service, get_payment_reconciler
from app.schemas.payment import (
    OrderCreateRequest,
    OrderResponse,
    PaymentVerificationRequest,
    PaymentVerificationResponse,
)
from app.services.exceptions import InvalidRequest, InvalidSignature, PaymentError
from app.services.order_service import OrderService
from app.services.reconciler import PaymentReconciler
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/create-order", response_model=OrderResponse)
async def create_order(
    request: OrderCreateRequest,
    service: OrderService = Depends(get_order_service),
):
    """
    Create a Razorpay order for payment.

    Accepts: amountInPaise, receipt (optional), notes (optional)
    Returns: the Razorpay order
    """
    order, _ = await service.create_order(request.amountInPaise, request.receipt, request.notes)
    return OrderResponse(order=order.payload)


@router.post("/verify-payment", response_model=PaymentVerificationResponse)
async def verify_payment(
    request: PaymentVerificationRequest,
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """
    Verify the signature Razorpay Checkout returned to the client.

    - Captures the payment when orders are created with manual capture
    - Marks the order verified and the member (if any) as paid
    """
    member = request.member or None
    await reconciler.verify_payment(
        request.razorpay_payment_id,
        request.razorpay_order_id,
        request.razorpay_signature,
        amount_in_paise=request.amountInPaise,
        member=member,
    )
    return PaymentVerificationResponse(ok=True)


@router.post("/razorpay-webhook", response_class=PlainTextResponse)
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
):
    """
    Handle Razorpay webhook events.

    - Verifies the signature over the raw body using RZP_WEBHOOK_SECRET
    - Records 'payment.captured' events keyed by payment id
    - Answers plain text; Razorpay only looks at the status code
    """
    body = await request.body()

    try:
        await reconciler.handle_webhook(body, x_razorpay_signature)
    except InvalidSignature:
        return PlainTextResponse("invalid signature", status_code=400)
    except InvalidRequest as e:
        logger.warning(f"Rejected webhook payload: {e.detail}")
        return PlainTextResponse("invalid payload", status_code=400)
    except PaymentError as e:
        logger.error(f"Webhook processing error: {e.detail}")
        return PlainTextResponse("error", status_code=500)
    except Exception as e:
        logger.error(f"webhook handler error: {e}")
        return PlainTextResponse("error", status_code=500)

    return PlainTextResponse("ok", status_code=200)
