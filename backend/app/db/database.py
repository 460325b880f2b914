"""
Database connection and session management.
Pooled engine with health-checked connections and automatic recycling.
Supports PostgreSQL and SQLite backends.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Generator
import logging

from app.core.config import settings
from app.db.models import Base

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """Build an engine for PostgreSQL (pooled) or SQLite (dev/tests)."""
    if database_url.startswith("sqlite"):
        in_memory = ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://")
        kwargs = {"connect_args": {"check_same_thread": False}, "echo": False}
        if in_memory:
            # A single shared connection keeps the in-memory database alive
            kwargs["poolclass"] = StaticPool
        sqlite_engine = create_engine(database_url, **kwargs)

        @event.listens_for(sqlite_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    # PostgreSQL: production pooling
    options = "-c statement_timeout=30000"
    if settings.database_schema:
        options += f" -c search_path={settings.database_schema}"

    pg_engine = create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=settings.database_pool_pre_ping,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10, "options": options},
    )

    @event.listens_for(pg_engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        """Tag connections so they are identifiable in pg_stat_activity."""
        cursor = dbapi_conn.cursor()
        cursor.execute("SET application_name = 'orion-tours-search'")
        cursor.close()

    return pg_engine


engine = create_db_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_engine() -> Engine:
    """Dependency injection for the shared engine (search runs its own connections)."""
    return engine


def get_db() -> Generator[Session, None, None]:
    """Dependency injection for a request-scoped database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None) -> None:
    """Create any missing catalog tables (development databases)."""
    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema initialized")
