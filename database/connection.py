"""
Results Ingest Database Connection
SQLAlchemy engine and session helpers, SQLite by default
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import DatabaseConfig

logger = logging.getLogger(__name__)


def create_db_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for the results database.

    Falls back to DATABASE_URL / DB_ECHO when arguments are omitted.
    SQLite connections get foreign key enforcement switched on.
    """
    config = DatabaseConfig()
    url = url or config.url
    echo = config.echo if echo is None else echo

    kwargs = {}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise each session sees an empty database
        kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

    engine = create_engine(url, echo=echo, **kwargs)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(engine, expire_on_commit=False, autoflush=False)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """
    Transaction scope for a unit of work.

    Usage:
        with session_scope(engine) as session:
            insert_student_results(session, results, year)
    """
    session = create_session_factory(engine)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    from database.models import Base

    Base.metadata.create_all(engine)
    logger.info(f"Database initialized at {engine.url.render_as_string(hide_password=True)}")


def health_check(engine: Engine) -> dict:
    """Check database connectivity."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": engine.dialect.name}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
