"""
Local storage for multipart uploads.

Files are written under the configured uploads directory. Whether a pipeline
keeps them afterwards is decided by its ``retain`` flag: batch uploads stay
servable under ``/uploads``, voice uploads are removed once handled.
"""
import logging
import os
import random
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class UploadTooLarge(Exception):
    def __init__(self, limit: int):
        super().__init__(f"File exceeds the {limit} byte limit")
        self.limit = limit


@dataclass
class UploadedFile:
    path: Path
    filename: str
    original_name: str
    media_type: str
    size: int

    @property
    def url(self) -> str:
        return f"/uploads/{self.filename}"


class FileStore:
    def __init__(self, upload_dir: Path):
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def unique_name(original_name: str) -> str:
        """``<epoch ms>-<random>-<original basename>``"""
        base = os.path.basename(original_name or "") or "upload"
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}-{base}"

    async def save(
        self,
        upload: UploadFile,
        filename: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ) -> UploadedFile:
        filename = filename or self.unique_name(upload.filename)
        path = self.upload_dir / filename
        size = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if max_bytes is not None and size > max_bytes:
                        raise UploadTooLarge(max_bytes)
                    out.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        logger.info(
            "Stored upload",
            extra={"stored_as": filename, "original_name": upload.filename, "size": size},
        )
        return UploadedFile(
            path=path,
            filename=filename,
            original_name=upload.filename or filename,
            media_type=upload.content_type or "application/octet-stream",
            size=size,
        )

    async def save_anonymous(self, upload: UploadFile, max_bytes: Optional[int] = None) -> UploadedFile:
        return await self.save(upload, filename=uuid.uuid4().hex, max_bytes=max_bytes)

    @staticmethod
    def discard(file: UploadedFile) -> None:
        try:
            file.path.unlink()
            logger.info("Deleted upload", extra={"stored_as": file.filename})
        except FileNotFoundError:
            logger.warning("Upload already gone", extra={"stored_as": file.filename})


@asynccontextmanager
async def owned_upload(file: UploadedFile, retain: bool) -> AsyncIterator[UploadedFile]:
    """Hand ``file`` to a pipeline; unless retained, it is deleted on exit."""
    try:
        yield file
    finally:
        if not retain:
            FileStore.discard(file)
