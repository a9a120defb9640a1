import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from app.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False, default="New chat")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_edited_at = Column(DateTime(timezone=True), default=utcnow)

    chat_history = relationship(
        "ChatTurn",
        back_populates="session",
        order_by="ChatTurn.position",
        cascade="all, delete-orphan",
    )


class ChatTurn(Base):
    __tablename__ = "chat_turns"

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(String(36), ForeignKey("chat_sessions.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    role = Column(String(10), nullable=False)            # "user" | "bot"
    content = Column(Text, nullable=False)
    message_type = Column(String(10), nullable=False, default="text")  # "text" | "voice"
    timestamp = Column(DateTime(timezone=True), default=utcnow)

    session = relationship("ChatSession", back_populates="chat_history")
