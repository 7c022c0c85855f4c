"""Database engine, sessions and the transactional primitive.

SQLite is configured for multi-writer correctness:
- WAL journal, so open read transactions never block a writer's commit;
- plain reads start a deferred transaction, while `atomic` units start with
  BEGIN IMMEDIATE so concurrent writers queue on the write lock (up to the
  busy timeout) instead of failing mid-transaction;
- foreign keys enforced.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from storefront.core.config import settings
from storefront.core.exceptions import PersistenceError, StorefrontError

logger = logging.getLogger(__name__)

# Connection execution option read by the SQLite "begin" hook
SQLITE_BEGIN_OPTION = "sqlite_begin_mode"


def _configure_sqlite(engine: Engine, in_memory: bool) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Take over transaction control from pysqlite so BEGIN/SAVEPOINT are ours
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": settings.SQLITE_BUSY_TIMEOUT_SECONDS,
        }
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        if in_memory:
            # One shared connection or every session sees an empty database
            engine = create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        else:
            engine = create_engine(database_url, connect_args=connect_args, poolclass=NullPool)
        _configure_sqlite(engine, in_memory)
        return engine

    # PostgreSQL/MySQL: QueuePool with sensible defaults
    return create_engine(
        database_url,
        pool_size=5,  # Number of persistent connections
        max_overflow=10,  # Max temporary connections
        pool_timeout=30,  # Seconds to wait for connection
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,  # Verify connection health
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=bind)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run the enclosed operations as one write transaction.

    A transaction already open in the session (typically from earlier
    lookups) is committed first so the unit starts on a fresh snapshot.
    Commits on success. Any exception rolls back everything done inside the
    unit; storage failures are re-raised as PersistenceError, domain errors
    propagate unchanged. Units do not nest.
    """
    try:
        if db.in_transaction():
            db.commit()
        db.connection(execution_options={SQLITE_BEGIN_OPTION: "IMMEDIATE"})
        yield db
        db.commit()
    except StorefrontError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"[DB] Transaction rolled back: {type(exc).__name__}: {exc}")
        raise PersistenceError(f"Storage operation failed ({type(exc).__name__})") from exc
    except Exception:
        db.rollback()
        raise
