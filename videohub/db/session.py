from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from videohub.core.settings import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine: Engine | None = None
SessionLocal: sessionmaker[Session] | None = None


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    if not _is_sqlite(database_url):
        return create_engine(database_url, pool_pre_ping=True)

    sqlite_engine = create_engine(database_url, connect_args={"check_same_thread": False})
    # Watch-history and video rows rely on ON DELETE CASCADE.
    event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
    return sqlite_engine


def configure_engine(database_url: str) -> None:
    global engine, SessionLocal
    if engine is not None:
        logger.debug("Disposing previous database engine url=%s", engine.url)
        engine.dispose()
    engine = build_engine(database_url)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    logger.info("Database engine configured dialect=%s", engine.dialect.name)


configure_engine(get_settings().database_url)


def init_db() -> None:
    from videohub.models import user, video  # noqa: F401

    if engine is None:
        raise RuntimeError("Database engine is not configured")
    Base.metadata.create_all(bind=engine)
    logger.info("Account tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


def get_db() -> Generator[Session, None, None]:
    if SessionLocal is None:
        raise RuntimeError("Database session factory is not configured")
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
