from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from enum import Enum


class TurnRole(str, Enum):
    USER = "user"
    BOT = "bot"


class MessageType(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class SessionCreate(BaseModel):
    title: Optional[str] = None


class ChatTurnOut(BaseModel):
    id: str
    role: TurnRole
    content: str
    messageType: MessageType = Field(validation_alias="message_type")
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True


class SessionOut(BaseModel):
    id: str
    title: str
    created_at: Optional[datetime] = None
    last_edited_at: Optional[datetime] = None
    chatHistory: List[ChatTurnOut] = Field(default_factory=list, validation_alias="chat_history")

    class Config:
        from_attributes = True
        populate_by_name = True
