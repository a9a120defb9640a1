"""
Response Models - Pydantic models for the upload endpoints
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class FileReport(BaseModel):
    """One entry per uploaded file, in upload order"""
    filename: str = Field(..., description="Name the file is stored under")
    originalname: str = Field(..., description="Client-side file name")
    mimetype: str = Field(..., description="Declared media type")
    size: int = Field(..., description="Size in bytes")
    url: str = Field(..., description="Public URL of the stored file")
    content: Optional[str] = Field(None, description="Extracted text or failure marker")
    ai_response: Optional[str] = Field(None, description="Provider reply or failure marker")


class UploadResponse(BaseModel):
    message: str
    files: List[FileReport]


class UploadFailure(BaseModel):
    message: str
    error: str


class VoiceReply(BaseModel):
    transcription: str
    reply: str
    success: bool = True
    modelUsed: str


class VoiceFailure(BaseModel):
    error: str
    details: Optional[str] = None
