"""Attachment upload route."""

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from ...app import Application
from ...attachments import UploadTooLarge
from ...errors import ChatError
from ...logging_config import get_logger
from ..errors import http_error

logger = get_logger(__name__)


def create_attachments_router(app: Application) -> APIRouter:
    """Create attachments router."""
    router = APIRouter(prefix="/api", tags=["attachments"])

    @router.post("/upload")
    async def upload(file: UploadFile = File(...)) -> dict:
        """Store an uploaded file and return its URL."""
        store = app.attachments
        # one byte over the limit is enough to reject
        data = await file.read(store.max_bytes + 1)

        try:
            stored = store.save(file.filename or "", data, file.content_type)
        except UploadTooLarge as e:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=e.reason
            )
        except ChatError as e:
            raise http_error(e)
        except OSError as e:
            logger.error("Upload error: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail="Upload failed")

        return {
            "success": True,
            "message": "File uploaded successfully",
            "fileUrl": stored.url,
            "fileName": stored.file_name,
            "fileSize": stored.size,
            "fileType": stored.content_type,
        }

    return router
