import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the connection pool and hands out sessions.

    Constructed once per application (or per test) and passed down; nothing in
    the package reaches for a global engine.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        if url.startswith("sqlite"):
            # FastAPI runs sync routes on a threadpool
            connect_args = engine_kwargs.pop("connect_args", {})
            connect_args.setdefault("check_same_thread", False)
            engine_kwargs["connect_args"] = connect_args
        self.engine = create_engine(url, future=True, **engine_kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, future=True)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        # Import models so their tables are registered on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit when the block finishes, roll back and re-raise on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
