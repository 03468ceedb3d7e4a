# app/schemas/purchase.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    course_id: int
    order_id: Optional[int] = None
    amount_paid: int
    currency: str
    status: str
    stripe_payment_intent_id: Optional[str] = None
    stripe_charge_id: Optional[str] = None
    created_at: datetime
    course_title: Optional[str] = None
