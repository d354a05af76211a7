"""Engine, session factory and the per-request session dependency.

Core services only flush. Whoever owns the session (a router, the outbox
worker) commits the unit of work.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from .config import settings

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
    **({} if _is_sqlite else {"pool_size": 5, "max_overflow": 10}),
)


def enable_sqlite_savepoints(target_engine) -> None:
    """Let begin_nested() work on pysqlite.

    pysqlite starts transactions lazily on the first DML statement, so
    SQLAlchemy has to issue BEGIN itself.
    """

    @event.listens_for(target_engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


if _is_sqlite:
    enable_sqlite_savepoints(engine)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session scope for code outside a request (workers, scripts).

        with get_db_session() as db:
            FilingLifecycleManager(db).transition(...)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request.

    Commits whatever is still pending when the endpoint returns, rolls back
    when it raises.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# SQLite reports the columns of a failed unique constraint, not its name
UNIQUE_CONSTRAINT_COLUMNS = {
    "uq_filing_owner_year": "filing.owner_user_id, filing.assessment_year",
    "uq_document_chain_version": "document.chain_root_id, document.version",
}


def is_unique_violation(exc: IntegrityError, constraint_name: Optional[str] = None) -> bool:
    """Whether ``exc`` came from a unique constraint (optionally a named one).

    PostgreSQL reports SQLSTATE 23505 with the constraint name; SQLite only
    says "UNIQUE constraint failed: <table.col, ...>".
    """
    orig = getattr(exc, "orig", None)
    message = str(orig)
    if getattr(orig, "pgcode", None) == "23505":
        return constraint_name is None or constraint_name in message
    if "UNIQUE constraint failed" not in message and "duplicate key" not in message:
        return False
    if constraint_name is None or constraint_name in message:
        return True
    columns = UNIQUE_CONSTRAINT_COLUMNS.get(constraint_name)
    return columns is not None and columns in message
