"""
Test Configuration and Fixtures
"""
import json
import os
import sys
import tempfile
from dataclasses import replace

import httpx
import pytest

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "development"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="media-uploads-")
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("GROQ_API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402

from app.core.config import get_settings  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.services.collaborators import OcrClient, SpeechClient, VideoCaptioner  # noqa: E402
from app.services.extractors import ExtractorDispatch  # noqa: E402
from app.services.llm_client import LanguageModelClient  # noqa: E402


OCR_URL = "http://ocr.test/ocr"
TRANSCRIBE_URL = "http://whisper.test/transcribe"
GEMINI_URL = "http://gemini.test/v1beta"
GROQ_URL = "http://groq.test/openai/v1/chat/completions"


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings(tmp_path):
    return replace(
        get_settings(),
        app_env="development",
        upload_dir=tmp_path / "uploads",
        ocr_service_url=OCR_URL,
        transcribe_service_url=TRANSCRIBE_URL,
        gemini_api_url=GEMINI_URL,
        groq_api_url=GROQ_URL,
        gemini_api_key="gemini-test-key",
        groq_api_key="groq-test-key",
        video_caption_command=[sys.executable, "-c", "import sys; print('caption of ' + sys.argv[1])"],
        caption_timeout=30.0,
    )


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class FakeServices:
    """Routes httpx calls to canned collaborator and provider answers."""

    def __init__(self):
        self.calls = []
        self.ocr_text = "Invoice total 42 EUR due next Monday"
        self.ocr_status = 200
        self.transcript = "What is the weather like today?"
        self.transcribe_status = 200
        self.gemini_reply = "Gemini says hello"
        self.groq_reply = "Groq says hello"
        self.groq_status = 200

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(request)
        if url.startswith(OCR_URL):
            if self.ocr_status != 200:
                return httpx.Response(self.ocr_status, text="ocr down")
            return httpx.Response(200, json={"text": self.ocr_text})
        if url.startswith(TRANSCRIBE_URL):
            if self.transcribe_status != 200:
                return httpx.Response(self.transcribe_status, text="whisper down")
            return httpx.Response(200, json={"transcript": self.transcript})
        if url.startswith(GEMINI_URL):
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": self.gemini_reply}]}}]}
            )
        if url.startswith(GROQ_URL):
            if self.groq_status != 200:
                return httpx.Response(self.groq_status, text="rate limited")
            return httpx.Response(200, json={"choices": [{"message": {"content": self.groq_reply}}]})
        return httpx.Response(404)

    def calls_to(self, prefix: str):
        return [r for r in self.calls if str(r.url).startswith(prefix)]

    def json_body(self, request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def fake_services():
    return FakeServices()


@pytest.fixture
def llm_client(settings, fake_services):
    return LanguageModelClient(settings, transport=fake_services.transport())


@pytest.fixture
def extractors(settings, fake_services):
    return ExtractorDispatch(
        ocr=OcrClient(settings.ocr_service_url, settings.ocr_timeout, transport=fake_services.transport()),
        captioner=VideoCaptioner(settings.video_caption_command, settings.caption_timeout),
    )


@pytest.fixture
def speech_client(settings, fake_services):
    return SpeechClient(settings.transcribe_service_url, settings.transcribe_timeout, transport=fake_services.transport())
