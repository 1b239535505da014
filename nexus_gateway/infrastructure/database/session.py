"""Database engine and session factories"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from nexus_gateway.config import settings

# Each request holds one connection; audit writes after commit borrow a second
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=10,
    pool_recycle=3600,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Request-scoped session; the endpoint decides when to commit"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Session factory for writers that must not share the request transaction"""
    return SessionLocal
