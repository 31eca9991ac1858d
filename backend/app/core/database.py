"""
Database configuration and session management
"""
import logging
import time
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.core.logging_config import LoggingConfig
from app.core.metrics import db_queries_total, db_query_duration_seconds

# Lazy initialization - don't create engine at module level
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

# Base class for models (can be created immediately)
Base = declarative_base()


def _statement_table(operation: str, statement: str) -> str:
    """Best-effort table name for SELECT/INSERT/UPDATE/DELETE statements"""
    words = statement.strip().split()
    keyword = {"select": "FROM", "delete": "FROM", "insert": "INTO"}.get(operation)
    if operation == "update" and len(words) > 1:
        return words[1].lower().strip(';"')
    if keyword:
        for i, word in enumerate(words[:-1]):
            if word.upper() == keyword:
                return words[i + 1].lower().strip(';"')
    return "unknown"


def _setup_db_metrics(engine: Engine):
    """Setup SQLAlchemy event listeners for database metrics"""

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault('query_start_time', []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if not conn.info.get('query_start_time'):
            return
        duration = time.time() - conn.info['query_start_time'].pop()
        operation = statement.strip().split()[0].lower() if statement.strip() else "unknown"
        table = _statement_table(operation, statement)
        db_queries_total.labels(operation=operation, table=table).inc()
        db_query_duration_seconds.labels(operation=operation, table=table).observe(duration)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine with pool options suited to the backend"""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases only exist per connection
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
    else:
        settings = get_settings()
        engine = create_engine(
            database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,  # Verify connections before using
            echo=echo,
            connect_args={"connect_timeout": 5} if "postgresql" in database_url else {},
        )
    _setup_db_metrics(engine)
    return engine


def get_engine() -> Engine:
    """Get or create database engine (lazy initialization)"""
    global _engine
    if _engine is None:
        settings = get_settings()
        LoggingConfig.configure()
        _engine = build_engine(settings.database_url, echo=settings.log_sqlalchemy)

        if not settings.log_sqlalchemy:
            sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
            sqlalchemy_logger.setLevel(logging.WARNING)
            sqlalchemy_logger.propagate = False

    return _engine


def get_session_local() -> sessionmaker:
    """Get or create session factory (lazy initialization)"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
