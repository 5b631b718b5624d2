"""
Database engine, session management, and base model.

Every model inherits from Base. Every request gets a session
from get_db().
"""

import uuid

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from church_ledger.config import get_settings

settings = get_settings()


def _connect_args(url: str) -> dict:
    """Driver-level options: statement timeout on Postgres, threading on SQLite."""
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={settings.STATEMENT_TIMEOUT_MS}"}
    return {}


# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles cases where the database restarted or a
# connection went stale.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# --- Session Factory ---
# autoflush=False: SQL is only sent when the ledger store
# flushes or commits, so every write is an explicit unit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def new_id() -> str:
    """Primary keys are UUID strings, matching the hosted schema."""
    return str(uuid.uuid4())


# --- Base Model Class ---
class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def enum_values(enum_cls) -> list[str]:
    """Store enum values (lowercase strings), not member names."""
    return [member.value for member in enum_cls]
