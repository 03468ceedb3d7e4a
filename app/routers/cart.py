# app/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_profile
from app.models.profile import Profile
from app.schemas.cart import CartItemCreate, CartItemResponse, CartResponse
from app.schemas.common import ActionResponse
from app.services.cart import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("/", response_model=ActionResponse[CartResponse])
def get_cart(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    cart = CartService(db).get_cart(profile.id)
    return ActionResponse(
        data=CartResponse(
            items=[CartItemResponse.model_validate(item) for item in cart["items"]],
            total=cart["total"],
            count=cart["count"],
        )
    )


@router.get("/count", response_model=ActionResponse[int])
def get_cart_count(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return ActionResponse(data=CartService(db).get_cart_count(profile.id))


@router.post("/items", response_model=ActionResponse[CartItemResponse], status_code=201)
def add_to_cart(
    item_in: CartItemCreate,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    item = CartService(db).add_to_cart(profile.id, item_in.course_id)
    return ActionResponse(data=CartItemResponse.model_validate(item))


@router.delete("/items/{course_id}", response_model=ActionResponse[bool])
def remove_from_cart(
    course_id: int,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return ActionResponse(data=CartService(db).remove_from_cart(profile.id, course_id))


@router.delete("/", response_model=ActionResponse[int])
def clear_cart(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Remove every item; returns how many were removed"""
    return ActionResponse(data=CartService(db).clear_cart(profile.id))
