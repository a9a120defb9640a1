import logging
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session

from app.models.sessions import ChatSession, ChatTurn, utcnow
from app.schemas.sessions import MessageType, TurnRole

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, title: Optional[str] = None) -> ChatSession:
        session = ChatSession(title=title or "New chat")
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        logger.info("Created chat session %s", session.id)
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self.db.get(ChatSession, session_id)

    def append_turns(
        self,
        session: ChatSession,
        turns: Iterable[Tuple[TurnRole, str, MessageType]],
    ) -> List[ChatTurn]:
        """Append turns in order and persist them with a single commit."""
        position = len(session.chat_history)
        added = []
        stamp = None
        try:
            for role, content, message_type in turns:
                # strictly increasing, even on coarse clocks
                now = utcnow()
                stamp = now if stamp is None or now > stamp else stamp + timedelta(microseconds=1)
                turn = ChatTurn(
                    position=position,
                    role=role.value,
                    content=content,
                    message_type=message_type.value,
                    timestamp=stamp,
                )
                session.chat_history.append(turn)
                added.append(turn)
                position += 1
            session.last_edited_at = utcnow()
            self.db.commit()
        except Exception:
            logger.exception("Failed to save turns for session %s", session.id)
            self.db.rollback()
            raise
        return added
