"""
Clients for the external extraction services.

- OCR microservice: multipart ``image`` in, ``{"text": ...}`` out
- Transcription microservice: multipart ``audio`` in, ``{"transcript": ...}`` out
- Video captioning: an external process whose stdout is the transcript
"""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import httpx

from app.core.errors import CollaboratorError, CollaboratorTimeout

logger = logging.getLogger(__name__)


class _MultipartClient:
    """Posts one file to a JSON-answering microservice."""

    name = "collaborator"
    field = "file"
    result_key = "text"

    def __init__(self, url: str, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def _post(self, path: Path, media_type: Optional[str]) -> Optional[str]:
        content = await asyncio.to_thread(Path(path).read_bytes)
        files = {self.field: (Path(path).name, content, media_type or "application/octet-stream")}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, files=files)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException:
            logger.error(f"Timeout calling {self.name} at {self.url}")
            raise CollaboratorTimeout(self.name, self.timeout)
        except httpx.HTTPStatusError as e:
            raise CollaboratorError(
                f"{self.name} answered {e.response.status_code}: {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorError(f"{self.name} request failed: {e}") from e

        if not isinstance(data, dict):
            raise CollaboratorError(f"{self.name} returned an unexpected payload")
        return data.get(self.result_key)


class OcrClient(_MultipartClient):
    name = "OCR service"
    field = "image"
    result_key = "text"

    async def read_text(self, path: Path, media_type: Optional[str] = None) -> Optional[str]:
        return await self._post(path, media_type)


class SpeechClient(_MultipartClient):
    name = "Transcription service"
    field = "audio"
    result_key = "transcript"

    async def transcribe(self, path: Path, media_type: Optional[str] = None) -> Optional[str]:
        return await self._post(path, media_type)


class VideoCaptioner:
    """Runs ``<command...> <video path>`` and returns what it prints."""

    name = "Video captioning"

    def __init__(self, command: List[str], timeout: float):
        self.command = list(command)
        self.timeout = timeout

    async def caption(self, path: Path) -> str:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                str(path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CollaboratorError(f"Could not start captioning process: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._reap(proc)
            raise CollaboratorTimeout(self.name, self.timeout)
        except BaseException:
            # cancelled along with its batch
            await self._reap(proc)
            raise

        if proc.returncode != 0:
            error = stderr.decode("utf-8", errors="replace").strip()
            raise CollaboratorError(error or "Python captioning failed.")
        return stdout.decode("utf-8", errors="replace").strip()

    @staticmethod
    async def _reap(proc) -> None:
        if proc.returncode is None:
            proc.kill()
        await proc.wait()
