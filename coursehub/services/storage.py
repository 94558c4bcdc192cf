"""
Image uploads to S3: course images, instructor certificates and profile pictures.
"""

import logging
import os
import uuid
from functools import lru_cache
from typing import Iterable, Optional

import boto3
from fastapi import UploadFile

from coursehub.config import settings
from coursehub.errors import InfrastructureError, ValidationError

logger = logging.getLogger(__name__)

COURSE_IMAGES_PREFIX = "course-images"
CERTIFICATES_PREFIX = "certificates"
PROFILE_PICTURES_PREFIX = "profile-pictures"

PROFILE_PICTURE_TYPES = ("image/jpeg", "image/png", "image/gif")


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client(
        "s3",
        aws_access_key_id=settings.ACCESS_KEY_ID,
        aws_secret_access_key=settings.SECRET_ACCESS_KEY,
        region_name=settings.AWS_REGION,
    )


def public_url(key: str) -> str:
    return f"https://{settings.BUCKET_NAME}.s3.amazonaws.com/{key}"


async def store_image(
    file: Optional[UploadFile],
    prefix: str,
    allowed_types: Optional[Iterable[str]] = None,
) -> str:
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    content_type = file.content_type or ""
    if allowed_types is not None:
        if content_type not in allowed_types:
            raise ValidationError("Only image files are allowed!")
    elif not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed!")

    contents = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(contents) > settings.MAX_UPLOAD_SIZE:
        raise ValidationError("File too large. Maximum size is 5 MB")

    extension = os.path.splitext(file.filename)[1].lower()
    key = f"{prefix}/{uuid.uuid4().hex}{extension}"
    try:
        get_s3_client().put_object(
            Bucket=settings.BUCKET_NAME,
            Key=key,
            Body=contents,
            ContentType=content_type,
        )
    except Exception as exc:
        logger.exception("Upload of %s failed", key)
        raise InfrastructureError("File upload failed") from exc

    logger.info("File uploaded successfully: %s", key)
    return public_url(key)
