import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from .config import settings
from .errors import PersistenceError

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

_SQLITE_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # In-memory databases live on a single connection
    if url in _SQLITE_MEMORY_URLS:
        kwargs["poolclass"] = StaticPool
    return kwargs

engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

if settings.DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

if settings.DATABASE_URL.startswith("sqlite") and settings.DATABASE_URL not in _SQLITE_MEMORY_URLS:
    # Worker processes share the file: take the write lock when a transaction
    # starts so two booking requests cannot both pass the overlap check
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create missing tables, then the indexes the booking queries rely on."""
    from . import models  # noqa: F401  (registers the mappers)

    Base.metadata.create_all(bind=engine)
    ensure_schema()


def ensure_schema():
    """
    Best-effort index creation for databases created before the indexes existed.
    Never fails app startup.
    """
    indexes = [
        "CREATE INDEX IF NOT EXISTS ix_bookings_room_start_end ON bookings(room_id, start_date, end_date);",
        "CREATE INDEX IF NOT EXISTS ix_bookings_created_at ON bookings(created_at);",
        "CREATE INDEX IF NOT EXISTS ix_bookings_name_email ON bookings(name, email);",
    ]
    try:
        with engine.begin() as conn:
            for ddl in indexes:
                conn.exec_driver_sql(ddl)
    except Exception as e:
        logger.warning("Skipping index creation: %s", e)


def commit_or_raise(db, what: str):
    """Commits the session; on failure rolls back and raises PersistenceError."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", what, e)
        raise PersistenceError(f"{what} failed") from e
