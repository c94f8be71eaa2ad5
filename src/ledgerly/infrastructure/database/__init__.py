"""Database infrastructure."""

from ledgerly.infrastructure.database.base import Base, SessionLocal, get_session, init_db
from ledgerly.infrastructure.database.models import Business, User
from ledgerly.infrastructure.database import finance  # noqa: F401  registers finance mappers

__all__ = ["Base", "SessionLocal", "get_session", "init_db", "Business", "User"]
