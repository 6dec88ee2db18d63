from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings

DATABASE_URL = f"sqlite:///{settings.sqlite_path}"


def enable_sqlite_foreign_keys(engine: Engine) -> Engine:
    """Turn on FK enforcement so cascade and restrict rules hold in SQLite."""

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


engine = enable_sqlite_foreign_keys(
    create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        future=True,
    )
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

