import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from fantasta.core.config import settings

logger = logging.getLogger(__name__)

# SQLite needs this when the sessions are used from FastAPI worker threads and the sweeper thread
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# FastAPI dependency: one session per request, always closed
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Scoped unit of work: commit on normal exit, roll back on any exception.

    All settlement and override writes go through here so a failure half-way
    through a sequence of statements never leaves partial state behind.
    """
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        logger.debug("transaction rolled back", exc_info=True)
        raise
