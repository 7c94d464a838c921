"""Engine and session factory construction."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from holdkeeper.infrastructure.persistence.orm import Base

SQLITE_BUSY_TIMEOUT_SECONDS = 30


def build_engine(database_url: str) -> Engine:
    """Create an engine for *database_url*.

    SQLite ignores ``SELECT ... FOR UPDATE``, so every SQLite transaction
    starts with ``BEGIN IMMEDIATE`` and takes the database write lock up
    front; writers queue on it instead of overwriting each other.  An
    in-memory database lives in a single connection, which the pool hands
    to one session at a time.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            database_url,
            connect_args=connect_args,
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=0,
            pool_timeout=SQLITE_BUSY_TIMEOUT_SECONDS,
        )
    else:
        engine = create_engine(database_url, connect_args=connect_args)
    _begin_immediate(engine)
    return engine


def _begin_immediate(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        # pysqlite would otherwise defer BEGIN until the first write
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
