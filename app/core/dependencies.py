from fastapi import Depends

from app.core.config import Settings, get_settings
from app.services.collaborators import OcrClient, SpeechClient, VideoCaptioner
from app.services.extractors import ExtractorDispatch
from app.services.file_storage import FileStore
from app.services.llm_client import LanguageModelClient
from app.services.upload_pipeline import UploadPipeline
from app.services.voice_pipeline import VoicePipeline


def get_file_store(settings: Settings = Depends(get_settings)) -> FileStore:
    return FileStore(settings.upload_dir)


def get_llm_client(settings: Settings = Depends(get_settings)) -> LanguageModelClient:
    return LanguageModelClient(settings)


def get_upload_pipeline(
    settings: Settings = Depends(get_settings),
    llm: LanguageModelClient = Depends(get_llm_client),
) -> UploadPipeline:
    extractors = ExtractorDispatch(
        ocr=OcrClient(settings.ocr_service_url, settings.ocr_timeout),
        captioner=VideoCaptioner(settings.video_caption_command, settings.caption_timeout),
    )
    return UploadPipeline(extractors, llm, retain_uploads=settings.retain_batch_uploads)


def get_voice_pipeline(
    settings: Settings = Depends(get_settings),
    llm: LanguageModelClient = Depends(get_llm_client),
) -> VoicePipeline:
    speech = SpeechClient(settings.transcribe_service_url, settings.transcribe_timeout)
    return VoicePipeline(speech, llm, retain_uploads=settings.retain_voice_uploads)
