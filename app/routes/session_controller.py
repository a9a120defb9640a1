from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.sessions import SessionCreate, SessionOut
from app.services.session_service import SessionService

router = APIRouter()


@router.post("/sessions", response_model=SessionOut, status_code=201)
def create_session(payload: SessionCreate, db: Session = Depends(get_db)):
    """Open a new, empty chat session"""
    session = SessionService(db).create(payload.title)
    return SessionOut.model_validate(session)


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str, db: Session = Depends(get_db)):
    """Get a chat session with its ordered history"""
    session = SessionService(db).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return SessionOut.model_validate(session)
