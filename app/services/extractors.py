"""
Extractor dispatch - turns a stored upload into text based on its media type.

Document parsers (PDF, DOCX, plain text) raise on failure and the caller
decides what to do. OCR and video captioning never raise past this module:
a failed call is logged and replaced by a readable failure marker so the
rest of the pipeline still sees content.
"""
import asyncio
import io
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from docx import Document
from pypdf import PdfReader

from app.services.collaborators import OcrClient, VideoCaptioner
from app.services.file_storage import UploadedFile

logger = logging.getLogger(__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"

OCR_FAILED = "⚠️ OCR microservice failed."
VIDEO_FAILED = "⚠️ Video transcription failed."


class ExtractorKind(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


def resolve_extractor(media_type: Optional[str]) -> Optional[ExtractorKind]:
    """Pick the single extractor for a declared media type, or None."""
    media_type = (media_type or "").lower()
    if media_type == PDF_TYPE:
        return ExtractorKind.PDF
    if media_type == DOCX_TYPE:
        return ExtractorKind.DOCX
    if media_type == TEXT_TYPE:
        return ExtractorKind.TEXT
    if media_type.startswith("image/"):
        return ExtractorKind.IMAGE
    if media_type.startswith("video/"):
        return ExtractorKind.VIDEO
    return None


def read_pdf(path: Path) -> str:
    reader = PdfReader(io.BytesIO(Path(path).read_bytes()))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def read_docx(path: Path) -> str:
    # paragraph text only, styling is dropped
    document = Document(str(path))
    return "\n".join(p.text for p in document.paragraphs)


def read_text(path: Path) -> str:
    return Path(path).read_text(encoding="utf-8")


class ExtractorDispatch:
    def __init__(self, ocr: OcrClient, captioner: VideoCaptioner):
        self.ocr = ocr
        self.captioner = captioner

    async def extract(self, file: UploadedFile) -> Optional[str]:
        kind = resolve_extractor(file.media_type)
        if kind is None:
            logger.info(f"No extractor for {file.media_type}, skipping {file.original_name}")
            return None

        logger.info(f"Extracting {file.original_name} with {kind.value} extractor")

        if kind is ExtractorKind.PDF:
            return await asyncio.to_thread(read_pdf, file.path)
        if kind is ExtractorKind.DOCX:
            return await asyncio.to_thread(read_docx, file.path)
        if kind is ExtractorKind.TEXT:
            return await asyncio.to_thread(read_text, file.path)
        if kind is ExtractorKind.IMAGE:
            return await self._ocr(file)
        return await self._caption(file)

    async def _ocr(self, file: UploadedFile) -> Optional[str]:
        try:
            return await self.ocr.read_text(file.path, file.media_type)
        except Exception as e:
            logger.error(f"OCR microservice failed for {file.original_name}: {e}")
            return OCR_FAILED

    async def _caption(self, file: UploadedFile) -> str:
        try:
            return await self.captioner.caption(file.path)
        except Exception as e:
            logger.error(f"Video audio transcription failed for {file.original_name}: {e}")
            return VIDEO_FAILED
