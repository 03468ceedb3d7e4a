# app/routers/upload.py
import logging
from typing import Literal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.core.dependencies import get_current_admin
from app.models.profile import Profile
from app.schemas.upload import UploadResponse
from app.utils.file_upload import file_upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Uploads"])


@router.post("", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    file_type: Literal["thumbnail", "video"] = Form(...),
    admin: Profile = Depends(get_current_admin),
):
    """
    Thumbnails are stored locally and served from /storage.
    Videos are not sent here; the response carries a presigned url for a
    direct upload to the bucket.
    """
    logger.info(f"Upload by {admin.id}: {file.filename} ({file.content_type}, {file_type})")

    if file_type == "thumbnail":
        saved = await file_upload_service.save_thumbnail(file)
        return UploadResponse(upload_type="local", **saved)

    presigned = file_upload_service.presign_video(
        file.filename, file.content_type, size=file.size
    )
    return UploadResponse(upload_type="presigned", **presigned)


@router.get("", response_model=UploadResponse)
def get_presigned_url(
    filename: str = Query(..., min_length=1),
    content_type: str = Query(...),
    admin: Profile = Depends(get_current_admin),
):
    presigned = file_upload_service.presign_video(filename, content_type)
    return UploadResponse(upload_type="presigned", **presigned)
