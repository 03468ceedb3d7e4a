# app/routers/order.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_profile, get_payment_processor
from app.models.profile import Profile
from app.schemas.common import ActionResponse
from app.schemas.order import OrderResponse, PaymentRequest
from app.services.cart import CartService
from app.services.order import OrderService
from app.services.payment import PaymentService
from app.utils.stripe_service import StripeService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/checkout", response_model=ActionResponse[OrderResponse], status_code=201)
def checkout(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Create a pending order from the current cart"""
    items = CartService(db).get_items(profile.id)
    order = OrderService(db).create_order(profile.id, items)
    return ActionResponse(data=OrderResponse.model_validate(order))


@router.post("/{order_id}/pay", response_model=ActionResponse[OrderResponse])
def pay_order(
    order_id: int,
    payment: Optional[PaymentRequest] = None,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
    processor: StripeService = Depends(get_payment_processor),
):
    payment_method_id = payment.payment_method_id if payment else None
    order = PaymentService(db, processor).pay_order(profile, order_id, payment_method_id)
    return ActionResponse(data=OrderResponse.model_validate(order))


@router.post("/{order_id}/cancel", response_model=ActionResponse[OrderResponse])
def cancel_order(
    order_id: int,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    order = OrderService(db).cancel_order(profile.id, order_id)
    return ActionResponse(data=OrderResponse.model_validate(order))


@router.get("/", response_model=List[OrderResponse])
def list_orders(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return OrderService(db).list_orders(profile.id)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return OrderService(db).get_order(profile.id, order_id)
