from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .config import settings


def build_engine(url: str, lock_timeout: float | None = None) -> Engine:
    """
    Create an engine for the store of record.

    For SQLite the driver busy timeout doubles as the commit lock wait,
    so a writer blocked behind another writer gives up after lock_timeout.
    """
    lock_timeout = settings.commit_timeout_seconds if lock_timeout is None else lock_timeout

    if url.startswith("sqlite"):
        # check_same_thread=False: sessions are used from FastAPI worker threads
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": lock_timeout},
        )

        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        # commit_booking narrows busy_timeout per call; undo it for the next user
        @event.listens_for(engine, "checkout")
        def reset_sqlite_busy_timeout(dbapi_connection, _record, _proxy):
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA busy_timeout = {int(lock_timeout * 1000)}")
            cursor.close()

        return engine

    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.resolved_database_url)

# SessionLocal is the only way request handlers talk to the database
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
