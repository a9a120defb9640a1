"""
Main FastAPI Application Entry Point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.core.config import get_settings
from app.core.logging_config import setup_json_logger
from app.core.request_logger import ContextLoggingMiddleware, RequestLoggingMiddleware
from app.database import Base, engine
from app.models import sessions  # noqa: F401  registers the tables
from app.routes import session_controller, upload_controller, voice_controller


settings = get_settings()
logger = setup_json_logger("media-service", settings.log_file)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Media service starting up")
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database initialized")
    yield
    logger.info("🛑 Media service shutting down")
    engine.dispose()


app = FastAPI(
    title="Media Assistant API",
    description="Extracts text from uploaded documents, images, video and voice notes and asks Gemini or Groq about it.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    redoc_url=None,
)

app.add_middleware(ContextLoggingMiddleware)  # sets request_id
app.add_middleware(RequestLoggingMiddleware)  # logs each request

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


app.include_router(upload_controller.router, prefix="/api", tags=["Upload"])
app.include_router(voice_controller.router, prefix="/api", tags=["Voice"])
app.include_router(session_controller.router, prefix="/api", tags=["Sessions"])

# Batch uploads stay on disk and are served from here
settings.upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir)), name="uploads")
