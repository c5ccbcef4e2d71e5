from fastapi import APIRouter, Depends, File, UploadFile, status
from typing import List

from ..schemas.storage import UploadOut
from ..services.access import ActorContext
from ..services.storage import LocalAttachmentStorage, get_attachment_storage
from ..utils.errors import UploadError, http_error_for
from .dependencies import get_current_actor


router = APIRouter(tags=["uploads"])


@router.post("/uploads", response_model=UploadOut, status_code=status.HTTP_201_CREATED)
def upload_images(
    images: List[UploadFile] = File(...),
    storage: LocalAttachmentStorage = Depends(get_attachment_storage),
    actor: ActorContext = Depends(get_current_actor),
):
    """Store chat images and return their URLs.

    Upload is the first half of sending an image; the message referencing
    the URL is created by a separate call.
    """
    paths: List[str] = []
    try:
        for image in images:
            try:
                paths.append(storage.upload(image.filename, image.content_type, image.file))
            finally:
                image.file.close()
    except UploadError as exc:
        raise http_error_for(exc)
    return UploadOut(url=paths[0], paths=paths)
