"""Database session dependency for FastAPI."""

from typing import Generator

from sqlalchemy.orm import Session

from ledgerly.infrastructure.database.base import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Yield a session per request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
