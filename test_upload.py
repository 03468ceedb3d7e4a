"""
Test thumbnail storage and presigned video uploads
"""

from pathlib import Path

import pytest

from app.core.config import settings
from app.utils.file_upload import file_upload_service
from conftest import auth_headers, make_course

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeMinio:
    def __init__(self):
        self.presigned = []

    def presigned_put_object(self, bucket, object_name, expires=None):
        self.presigned.append((bucket, object_name, expires))
        return f"https://uploads.example.com/{bucket}/{object_name}?X-Amz-Signature=abc"


@pytest.fixture
def fake_minio(monkeypatch):
    fake = FakeMinio()
    monkeypatch.setattr(file_upload_service, "_s3_client", lambda: fake)
    return fake


def test_thumbnail_is_stored_locally(client, db, admin):
    response = client.post(
        "/api/upload",
        files={"file": ("cover.png", PNG_BYTES, "image/png")},
        data={"file_type": "thumbnail"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["upload_type"] == "local"
    assert body["url"].startswith("/storage/courses/")
    assert body["url"].endswith(".png")
    assert body["size"] == len(PNG_BYTES)

    stored = Path(settings.upload_dir) / "courses" / body["filename"]
    assert stored.read_bytes() == PNG_BYTES


def test_thumbnail_rejects_other_types(client, db, admin):
    response = client.post(
        "/api/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        data={"file_type": "thumbnail"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_thumbnail_rejects_empty_file(client, db, admin):
    response = client.post(
        "/api/upload",
        files={"file": ("empty.png", b"", "image/png")},
        data={"file_type": "thumbnail"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400


def test_uploads_are_admin_only(client, db, user):
    response = client.post(
        "/api/upload",
        files={"file": ("cover.png", PNG_BYTES, "image/png")},
        data={"file_type": "thumbnail"},
        headers=auth_headers(user),
    )

    assert response.status_code == 403


def test_video_upload_returns_presigned_url(client, db, admin, fake_minio):
    response = client.post(
        "/api/upload",
        files={"file": ("lesson-1.mp4", b"\x00" * 128, "video/mp4")},
        data={"file_type": "video"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["upload_type"] == "presigned"
    assert body["filename"].startswith("videos/")
    assert body["filename"].endswith(".mp4")
    assert body["signed_url"].startswith("https://uploads.example.com/")
    assert body["url"].endswith(body["filename"])

    bucket, object_name, expires = fake_minio.presigned[0]
    assert bucket == settings.s3_bucket
    assert object_name == body["filename"]
    assert expires.total_seconds() == settings.s3_presign_expiration


def test_presigned_url_by_query(client, db, admin, fake_minio):
    response = client.get(
        "/api/upload",
        params={"filename": "intro.mov", "content_type": "video/quicktime"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["filename"].endswith(".mov")
    assert len(fake_minio.presigned) == 1


def test_presign_rejects_non_video(client, db, admin, fake_minio):
    response = client.get(
        "/api/upload",
        params={"filename": "intro.png", "content_type": "image/png"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 400
    assert fake_minio.presigned == []


def test_deleting_course_removes_its_thumbnail(client, db, admin):
    headers = auth_headers(admin)
    uploaded = client.post(
        "/api/upload",
        files={"file": ("cover.png", PNG_BYTES, "image/png")},
        data={"file_type": "thumbnail"},
        headers=headers,
    ).json()
    course = make_course(db, thumbnail_url=uploaded["url"])
    stored = Path(settings.upload_dir) / "courses" / uploaded["filename"]
    assert stored.exists()

    response = client.delete(f"/admin/courses/{course.id}", headers=headers)

    assert response.status_code == 200
    assert not stored.exists()
