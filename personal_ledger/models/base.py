"""
Database engine, session management, base model and unit of work.

Every model inherits from Base. Every request gets a session
from get_db(). Every mutating ledger operation runs inside
exactly one atomic() block.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase

from personal_ledger.config import get_settings

settings = get_settings()

# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles a restarted database or a stale connection.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
)

# --- Session Factory ---
# autocommit=False: changes are only saved by an explicit commit,
# which atomic() issues once per ledger operation.
# autoflush=False: SQL is only sent on an explicit flush, so the
# services control the order in which rows hit the database.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


# --- Base Model Class ---
class Base(DeclarativeBase):
    pass


# --- Unit of work ---
@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a block of ledger work as one all-or-nothing unit.

    The block's reads and writes share the session's transaction.
    On normal exit the transaction is committed; on any exception
    it is rolled back and the exception propagates unchanged, so
    no reader ever sees a movement without its balance update or
    one transfer leg without the other.

    A failed unit is never retried here: replaying a balance
    increment without deduplication would apply it twice.
    """
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, even if the endpoint raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
