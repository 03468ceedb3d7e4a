# app/schemas/cart.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CartItemCreate(BaseModel):
    course_id: int = Field(..., examples=[42])


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    course_id: int
    title: str
    price: int
    thumbnail_url: Optional[str] = None
    instructor_name: Optional[str] = None
    added_at: datetime


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    total: int
    count: int
