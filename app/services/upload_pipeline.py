import asyncio
import logging
from typing import List, Optional

from app.schemas.media import FileReport
from app.services.extractors import ExtractorDispatch
from app.services.file_storage import UploadedFile, owned_upload
from app.services.llm_client import (
    DOCUMENT_PROFILE,
    LanguageModelClient,
    resolve_model,
    select_provider_by_prefix,
    should_ask,
)

logger = logging.getLogger(__name__)

AI_FAILED = "⚠️ AI processing failed."
DEFAULT_SELECTOR = "groq"


class UploadPipeline:
    """Extract and ask about every file of a batch, all files at once.

    Document parser errors are not caught here: they fail the whole batch.
    """

    def __init__(self, extractors: ExtractorDispatch, llm: LanguageModelClient, retain_uploads: bool = True):
        self.extractors = extractors
        self.llm = llm
        self.retain_uploads = retain_uploads

    async def process(self, files: List[UploadedFile], selector: Optional[str] = None) -> List[FileReport]:
        selector = (selector or DEFAULT_SELECTOR).lower()
        tasks = [asyncio.create_task(self._process_one(f, selector)) for f in files]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _process_one(self, file: UploadedFile, selector: str) -> FileReport:
        async with owned_upload(file, retain=self.retain_uploads):
            content = await self.extractors.extract(file)
            ai_response = await self._ask(file, content, selector) if should_ask(content) else None

        return FileReport(
            filename=file.filename,
            originalname=file.original_name,
            mimetype=file.media_type,
            size=file.size,
            url=file.url,
            content=content,
            ai_response=ai_response,
        )

    async def _ask(self, file: UploadedFile, text: str, selector: str) -> Optional[str]:
        provider = select_provider_by_prefix(selector)
        if provider is None:
            logger.info(f"No provider matches '{selector}', skipping AI reply for {file.original_name}")
            return None
        try:
            return await self.llm.ask(text, provider, DOCUMENT_PROFILE, resolve_model(provider, selector))
        except Exception as e:
            logger.error(f"AI processing failed for {file.original_name}: {e}")
            return AI_FAILED
