import os
import shlex
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


def _default_caption_command() -> List[str]:
    return [sys.executable, str(Path.cwd() / "uploads" / "video_captioning" / "caption_video.py")]


@dataclass(frozen=True)
class Settings:
    app_env: str = "production"
    database_url: str = "sqlite:///./media_assistant.db"
    upload_dir: Path = Path("uploads")

    # Collaborators
    ocr_service_url: str = "http://localhost:5003/ocr"
    transcribe_service_url: str = "http://localhost:5001/transcribe"
    video_caption_command: List[str] = field(default_factory=_default_caption_command)
    ocr_timeout: float = 60.0
    transcribe_timeout: float = 60.0
    caption_timeout: float = 600.0

    # Providers
    gemini_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    llm_timeout: float = 60.0

    # Uploads
    voice_max_bytes: int = 10 * 1024 * 1024
    retain_batch_uploads: bool = True
    retain_voice_uploads: bool = False

    log_file: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Build the settings object from the process environment."""
    caption_command = os.getenv("VIDEO_CAPTION_COMMAND")
    return Settings(
        app_env=os.getenv("APP_ENV", "production"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./media_assistant.db"),
        upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")),
        ocr_service_url=os.getenv("OCR_SERVICE_URL", "http://localhost:5003/ocr"),
        transcribe_service_url=os.getenv("TRANSCRIBE_SERVICE_URL", "http://localhost:5001/transcribe"),
        video_caption_command=shlex.split(caption_command) if caption_command else _default_caption_command(),
        ocr_timeout=float(os.getenv("OCR_TIMEOUT", 60)),
        transcribe_timeout=float(os.getenv("TRANSCRIBE_TIMEOUT", 60)),
        caption_timeout=float(os.getenv("CAPTION_TIMEOUT", 600)),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        groq_api_key=os.getenv("GROQ_API_KEY") or None,
        gemini_api_url=os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"),
        groq_api_url=os.getenv("GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions"),
        llm_timeout=float(os.getenv("LLM_TIMEOUT", 60)),
        voice_max_bytes=int(os.getenv("VOICE_MAX_BYTES", 10 * 1024 * 1024)),
        retain_batch_uploads=_env_bool("RETAIN_BATCH_UPLOADS", True),
        retain_voice_uploads=_env_bool("RETAIN_VOICE_UPLOADS", False),
        log_file=os.getenv("LOG_FILE") or None,
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
