"""
Voice Controller - voice notes posted into a chat session
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.dependencies import get_file_store, get_voice_pipeline
from app.core.errors import VoiceRequestError
from app.database import get_db
from app.schemas.media import VoiceFailure, VoiceReply
from app.services.file_storage import FileStore, UploadTooLarge
from app.services.session_service import SessionService
from app.services.voice_pipeline import VoicePipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str, details: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=VoiceFailure(error=message, details=details).model_dump(exclude_none=True),
    )


@router.post(
    "/voice/sessions/{session_id}/voice-upload",
    response_model=VoiceReply,
    responses={
        400: {"model": VoiceFailure},
        404: {"model": VoiceFailure},
        413: {"model": VoiceFailure},
        500: {"model": VoiceFailure},
    },
)
async def voice_upload(
    session_id: str,
    audio: Optional[UploadFile] = File(None),
    model: Optional[str] = Query(None, description="gemini or groq (default groq)"),
    store: FileStore = Depends(get_file_store),
    pipeline: VoicePipeline = Depends(get_voice_pipeline),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Transcribe an audio note, reply to it and store both turns in the session."""
    if audio is None:
        return _error(400, "No audio file uploaded")

    try:
        file = await store.save_anonymous(audio, max_bytes=settings.voice_max_bytes)
    except UploadTooLarge as e:
        logger.warning(f"Rejected voice upload for session {session_id}: {e}")
        return _error(413, "Audio file too large")
    except Exception as e:
        logger.exception("Could not store voice upload")
        return _error(500, "Voice processing failed", None if settings.is_production else str(e))

    try:
        return await pipeline.handle(session_id, file, SessionService(db), model)
    except VoiceRequestError as e:
        logger.info(f"Voice upload rejected ({e.status_code}): {e.message}")
        return _error(e.status_code, e.message)
    except Exception as e:
        logger.exception("Voice processing error")
        return _error(500, "Voice processing failed", None if settings.is_production else str(e))
