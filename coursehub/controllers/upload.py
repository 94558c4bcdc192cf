from enum import Enum

from fastapi import APIRouter, Depends, File, UploadFile

from coursehub.oauth2 import get_current_user_jwt
from coursehub.services import storage

router = APIRouter(prefix="/api/upload", tags=["upload"])


class UploadTarget(str, Enum):
    IMAGE = "image"
    CERTIFICATE = "certificate"


PREFIXES = {
    UploadTarget.IMAGE: storage.COURSE_IMAGES_PREFIX,
    UploadTarget.CERTIFICATE: storage.CERTIFICATES_PREFIX,
}


@router.post("")
async def upload_image(
    target: UploadTarget = UploadTarget.IMAGE,
    image: UploadFile = File(None),
    current_user: dict = Depends(get_current_user_jwt),
):
    """Store a course image or instructor certificate and return its public URL"""
    url = await storage.store_image(image, PREFIXES[target])
    return {"url": url}
