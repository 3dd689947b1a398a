from collections.abc import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from taskforge.config import settings


def enable_sqlite_savepoints(db_engine: Engine) -> None:
    """Make pysqlite honour SAVEPOINT by letting SQLAlchemy emit BEGIN itself."""

    @event.listens_for(db_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


_connect_args = (
    {"connect_timeout": settings.db_connection_timeout_seconds}
    if settings.database_url.startswith("postgresql")
    else {}
)

engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def ping(db_engine=None) -> None:
    """Run a trivial query, raising if the database is unreachable."""
    with (db_engine or engine).connect() as conn:
        conn.execute(text("SELECT 1"))


def get_engine():
    return engine
