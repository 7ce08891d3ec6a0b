from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field, StrictInt

class OrderCreateRequest(BaseModel):
    amountInPaise: StrictInt = Field(gt=0)  # smallest currency unit (paise)
    receipt: Optional[str] = None
    notes: Dict[str, str] = Field(default_factory=dict)

class OrderResponse(BaseModel):
    order: Dict[str, Any]

class PaymentVerificationRequest(BaseModel):
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_order_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    # Only used for manual capture; anything that isn't a positive int skips it.
    amountInPaise: Optional[Any] = None
    # Stored as sent; memberId picks the member document to update.
    member: Optional[Dict[str, Any]] = None

class PaymentVerificationResponse(BaseModel):
    ok: bool = True

class Order(BaseModel):
    id: str
    amount: int
    currency: str = "INR"
    receipt: str
    capture_mode: int
    notes: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)  # raw Razorpay order
