# teacher_eval/db/session.py
from __future__ import annotations

import logging
import re
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from teacher_eval.core.config import Settings

logger = logging.getLogger(__name__)


def _mask(u: str) -> str:
    """Hide credentials in URLs before logging"""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", u)


def _enable_sqlite_fks(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Engine + session factory for one SQLite file.
    Built once by create_app() and kept on app.state.
    """

    def __init__(self, settings: Settings):
        self.url = settings.db_url
        settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Using database %s", _mask(self.url))
        self.engine: Engine = create_engine(
            self.url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
        event.listen(self.engine, "connect", _enable_sqlite_fks)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_schema(self) -> None:
        from teacher_eval.db.base import Base

        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(text("SELECT 1")).fetchone()
                return bool(row and row[0] == 1)
        except Exception:
            logger.exception("Database connection check failed")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency: one session per request"""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
