# app/schemas/upload.py
from typing import Literal, Optional

from pydantic import BaseModel


class UploadResponse(BaseModel):
    success: bool = True
    upload_type: Literal["local", "presigned"]
    url: str
    filename: str
    signed_url: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None
