import logging
import time

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import (
    DB_LOG_SLOW_QUERIES,
    DB_MAX_OVERFLOW,
    DB_POOL_RECYCLE,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_SLOW_QUERY_THRESHOLD,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str, **overrides) -> Engine:
    """
    Create the SQLAlchemy engine for the entity store.

    Server databases get the pooled configuration, SQLite gets a
    thread-agnostic connection so FastAPI's threadpool can share it.
    """
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
    else:
        options = {
            "pool_pre_ping": True,  # Test connections before using
            "pool_recycle": DB_POOL_RECYCLE,
            "pool_size": DB_POOL_SIZE,
            "max_overflow": DB_MAX_OVERFLOW,
            "pool_timeout": DB_POOL_TIMEOUT,
        }
    options.update(overrides)

    try:
        engine = create_engine(url, echo=False, **options)
        logger.info("✅ Database engine created successfully")
        if not url.startswith("sqlite"):
            logger.info(
                f"📊 Connection pool: size={DB_POOL_SIZE}, max_overflow={DB_MAX_OVERFLOW}, timeout={DB_POOL_TIMEOUT}s"
            )
    except Exception as e:
        logger.error(f"❌ Failed to create database engine: {e}")
        raise

    if DB_LOG_SLOW_QUERIES:
        install_slow_query_logging(engine)

    return engine


def install_slow_query_logging(engine: Engine, threshold: float = DB_SLOW_QUERY_THRESHOLD):
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """Yield one session per request from the factory opened in the app lifespan"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
