"""
Bairro - Photo Upload Router

The app uploads each photo after its occurrence was accepted, under the
filename it put in the occurrence's foto slot.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from ..dependencies import get_photo_store
from ..services.errors import InvalidPhotoName
from ..services.photo_store import PhotoStore


logger = logging.getLogger(__name__)

router = APIRouter(tags=["photos"])


@router.post("/serverapp_img_upload")
@router.post("/{prefix:path}/serverapp_img_upload", include_in_schema=False)
def upload_photo(
    file: Optional[UploadFile] = File(None),
    photo_store: PhotoStore = Depends(get_photo_store),
):
    """Store one uploaded photo in the photo store."""
    if file is None or not file.filename:
        logger.debug("No files")
        return JSONResponse(status_code=400, content={
            "status": False,
            "message": "No file uploaded",
        })

    try:
        size = photo_store.save(file.filename, file.file)
    except InvalidPhotoName as e:
        logger.warning(str(e))
        return JSONResponse(status_code=400, content={
            "status": False,
            "message": "Invalid file name",
        })
    except OSError as e:
        logger.error(f"Error storing uploaded file {file.filename}: {e}")
        return JSONResponse(status_code=500, content={
            "status": False,
            "message": "Could not store file",
        })

    logger.debug(f"File {file.filename} uploaded ({size} bytes)")
    return {
        "status": True,
        "message": "File is uploaded",
        "data": {
            "name": file.filename,
            "mimetype": file.content_type,
            "size": size,
        },
    }
