from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
import logging

from app.core.config import get_settings


db_logger = logging.getLogger("database")

DATABASE_URL = get_settings().database_url

Base = declarative_base()


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # single shared connection so in-memory databases survive across threads
        return create_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=False,
            future=True,
        )

    return create_engine(
        url,
        # Connection Pool Settings
        poolclass=QueuePool,
        pool_size=15,
        max_overflow=25,
        pool_timeout=60,
        pool_recycle=3600,               # Recycle connections every hour
        pool_pre_ping=True,              # Validate connections before use
        connect_args={
            "connect_timeout": 10,
            "application_name": "media_assistant",
        },
        echo=False,
        future=True,
    )


engine = _build_engine(DATABASE_URL)
db_logger.info("Database engine created", extra={"dialect": engine.dialect.name})

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False  # Keep objects accessible after commit
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
