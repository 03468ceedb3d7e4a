# app/schemas/common.py
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ActionResponse(BaseModel, Generic[T]):
    """Uniform envelope returned by user-facing actions."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
