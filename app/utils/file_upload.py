# app/utils/file_upload.py

import logging
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from minio import Minio

from app.core.config import settings
from app.core.decorator import ErrorCode, ServiceError

logger = logging.getLogger(__name__)

# Allowed content types
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp"}
ALLOWED_VIDEO_TYPES = {"video/mp4", "video/mpeg", "video/quicktime", "video/x-msvideo"}
MAX_IMAGE_SIZE = settings.max_image_size_mb * 1024 * 1024
MAX_VIDEO_SIZE = settings.max_video_size_mb * 1024 * 1024


def _invalid(message: str) -> ServiceError:
    return ServiceError(ErrorCode.VALIDATION_ERROR, message, 400)


class FileUploadService:
    """Service to handle course thumbnails on disk and presigned video uploads."""

    def __init__(self, base_storage_path: str = "storage"):
        """
        Initialize the file upload service.

        Args:
            base_storage_path: Base directory for file storage (relative to project root)
        """
        self.base_storage_path = Path(base_storage_path)
        self._ensure_storage_directories()

    def _ensure_storage_directories(self):
        """Create storage directories if they don't exist."""
        (self.base_storage_path / "courses").mkdir(parents=True, exist_ok=True)

    def _get_file_extension(self, filename: str) -> str:
        """Extract file extension from filename."""
        return Path(filename).suffix.lower()

    def _unique_name(self, filename: str) -> str:
        return f"{uuid.uuid4()}{self._get_file_extension(filename)}"

    def _s3_client(self) -> Minio:
        endpoint = settings.s3_endpoint.replace("http://", "").replace("https://", "")
        return Minio(
            endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            secure=settings.s3_secure,
            region=settings.s3_region,
        )

    def public_video_url(self, object_name: str) -> str:
        if settings.s3_endpoint == "s3.amazonaws.com":
            return (
                f"https://{settings.s3_bucket}.s3.{settings.s3_region}"
                f".amazonaws.com/{object_name}"
            )
        scheme = "https" if settings.s3_secure else "http"
        endpoint = settings.s3_endpoint.replace("http://", "").replace("https://", "")
        return f"{scheme}://{endpoint}/{settings.s3_bucket}/{object_name}"

    async def save_thumbnail(self, file: UploadFile, folder: str = "courses") -> dict:
        """
        Validate and store a course thumbnail under ``storage/<folder>``.

        Returns:
            dict with the public ``/storage/...`` url, filename, size and type

        Raises:
            ServiceError: If validation or the write fails
        """
        if not file.filename:
            raise _invalid("No file provided")

        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise _invalid("Invalid image format. Please upload JPEG, PNG, or WebP files.")

        contents = await file.read()
        await file.seek(0)

        if len(contents) == 0:
            raise _invalid("Empty file uploaded")
        if len(contents) > MAX_IMAGE_SIZE:
            raise _invalid(
                f"Image file too large. Maximum size is {settings.max_image_size_mb}MB."
            )

        filename = self._unique_name(file.filename)
        folder_path = self.base_storage_path / folder
        folder_path.mkdir(parents=True, exist_ok=True)

        try:
            with open(folder_path / filename, "wb") as f:
                f.write(contents)
        except OSError as e:
            logger.error(f"Error saving thumbnail {filename}: {e}")
            raise ServiceError(
                ErrorCode.PERSISTENCE_ERROR, f"Error saving file: {str(e)}", 500
            )

        return {
            "url": f"/storage/{folder}/{filename}",
            "filename": filename,
            "size": len(contents),
            "type": file.content_type,
        }

    def presign_video(
        self, filename: str, content_type: str, size: Optional[int] = None
    ) -> dict:
        """
        Create a presigned PUT url for a direct-to-bucket video upload.

        The object is stored as ``videos/<uuid><ext>``.
        """
        if not filename:
            raise _invalid("No file provided")
        if content_type not in ALLOWED_VIDEO_TYPES:
            raise _invalid(
                "Invalid video format. Please upload MP4, MPEG, MOV, or AVI files."
            )
        if size is not None and size > MAX_VIDEO_SIZE:
            raise _invalid(
                f"Video file too large. Maximum size is {settings.max_video_size_mb}MB."
            )

        object_name = f"videos/{self._unique_name(filename)}"
        signed_url = self._s3_client().presigned_put_object(
            settings.s3_bucket,
            object_name,
            expires=timedelta(seconds=settings.s3_presign_expiration),
        )
        logger.info(f"Presigned upload url generated for {object_name}")

        return {
            "url": self.public_video_url(object_name),
            "filename": object_name,
            "signed_url": signed_url,
            "size": size,
            "type": content_type,
        }

    def delete_image(self, relative_path: str) -> bool:
        """
        Delete a stored image.

        Args:
            relative_path: Relative path to the file (e.g., 'courses/uuid.jpg')

        Returns:
            True if deleted successfully, False otherwise
        """
        try:
            file_path = self.base_storage_path / relative_path
            if file_path.exists() and file_path.is_file():
                file_path.unlink()
                return True
            return False
        except OSError as e:
            logger.warning(f"Could not delete {relative_path}: {e}")
            return False


# Create a singleton instance
file_upload_service = FileUploadService(settings.upload_dir)
