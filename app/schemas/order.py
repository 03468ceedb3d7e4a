# app/schemas/order.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    price: int
    course_title: str
    created_at: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    total_amount: int
    currency: str
    status: str
    stripe_payment_intent_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    stripe_charge_id: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []


class PaymentRequest(BaseModel):
    payment_method_id: Optional[str] = Field(
        None,
        description="Stripe payment method to confirm with. Defaults to the configured method.",
        examples=["pm_card_visa"],
    )


class OrderStatusUpdate(BaseModel):
    status: Literal["pending", "completed", "cancelled", "failed"]


class AdminOrderResponse(OrderResponse):
    user_email: Optional[str] = None
    user_full_name: Optional[str] = None


class AdminOrderListResponse(BaseModel):
    orders: List[AdminOrderResponse]
    total: int
    page: int
    size: int
    total_pages: int
