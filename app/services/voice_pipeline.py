import logging
from typing import Optional

from app.core.errors import UnknownProviderError, VoiceRequestError
from app.schemas.media import VoiceReply
from app.schemas.sessions import MessageType, TurnRole
from app.services.collaborators import SpeechClient
from app.services.file_storage import UploadedFile, owned_upload
from app.services.llm_client import VOICE_PROFILE, LanguageModelClient, select_provider_exact
from app.services.session_service import SessionService

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "groq"


class VoicePipeline:
    """Transcribe a voice note, answer it and record both turns in the session.

    Steps run strictly one after the other. The audio file is released on
    every exit path, after the session has been saved.
    """

    def __init__(self, speech: SpeechClient, llm: LanguageModelClient, retain_uploads: bool = False):
        self.speech = speech
        self.llm = llm
        self.retain_uploads = retain_uploads

    async def handle(
        self,
        session_id: str,
        file: UploadedFile,
        sessions: SessionService,
        selector: Optional[str] = None,
    ) -> VoiceReply:
        selector = selector or DEFAULT_PROVIDER
        logger.info(
            "Voice upload started",
            extra={"session_id": session_id, "stored_as": file.filename, "model": selector},
        )

        async with owned_upload(file, retain=self.retain_uploads):
            logger.info("Sending audio to transcription server...")
            transcript = await self.speech.transcribe(file.path, file.media_type)
            if not transcript or not transcript.strip():
                raise VoiceRequestError(400, "No speech detected in audio")

            session = sessions.get(session_id)
            if session is None:
                raise VoiceRequestError(404, "Session not found")

            try:
                provider = select_provider_exact(selector)
            except UnknownProviderError:
                raise VoiceRequestError(400, "Unknown model selected")

            reply = await self.llm.ask(transcript, provider, VOICE_PROFILE)

            sessions.append_turns(
                session,
                [
                    (TurnRole.USER, transcript, MessageType.VOICE),
                    (TurnRole.BOT, reply, MessageType.TEXT),
                ],
            )

        logger.info("Voice processing completed successfully", extra={"session_id": session_id})
        return VoiceReply(transcription=transcript, reply=reply, success=True, modelUsed=selector)
