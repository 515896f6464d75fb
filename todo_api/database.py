import logging

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or url.startswith("sqlite:///:memory:?")


class Database:
    """Engine plus session factory for one database URL."""

    def __init__(self, url: str):
        self.url = url
        kwargs = {}
        # Only apply sqlite-specific connect_args when using sqlite
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(url):
                # one shared connection, otherwise every pool checkout sees an empty database
                kwargs["poolclass"] = StaticPool
        else:
            # Enable pool_pre_ping to avoid stale connections (useful for cloud DBs like Neon)
            kwargs["pool_pre_ping"] = True
        self.engine = create_engine(url, **kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self):
        # registers the mapped classes on Base.metadata
        from todo_api.models import task, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.warning("database ping failed", exc_info=True)
            return False

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
