"""
Upload Controller - batch document/image/video uploads
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse

from app.core.dependencies import get_file_store, get_upload_pipeline
from app.schemas.media import UploadFailure, UploadResponse
from app.services.file_storage import FileStore
from app.services.upload_pipeline import UploadPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={500: {"model": UploadFailure}},
)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None),
    model: Optional[str] = Query(None, description="Model selector, e.g. groq or gemini-1.5-flash"),
    store: FileStore = Depends(get_file_store),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
):
    """
    Store every uploaded file, extract its text and ask the selected model about it.

    Returns one report per file, in upload order.
    """
    try:
        stored = [await store.save(f) for f in files or []]
        logger.info(f"Processing batch of {len(stored)} file(s) with model '{model or 'groq'}'")
        reports = await pipeline.process(stored, model)
    except Exception as e:
        logger.exception("Upload & processing error")
        return JSONResponse(
            status_code=500,
            content=UploadFailure(message="Upload failed", error=str(e)).model_dump(),
        )

    return UploadResponse(
        message="Files uploaded, parsed, and processed successfully",
        files=reports,
    )
