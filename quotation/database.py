"""SQLAlchemy engine, session factory and transaction helpers."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from quotation.config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """Run a block as one transaction: commit on success, roll back on any error.

    Nested blocks join the outermost one, so only the outermost block commits
    or rolls back.
    """
    depth = db.info.get("atomic_depth", 0)
    db.info["atomic_depth"] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except Exception:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info["atomic_depth"] = depth
