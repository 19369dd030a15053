import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()

logger = logging.getLogger(__name__)


class Database:
    """Owns the connection pool and session factory for one application instance."""

    def __init__(self, url: str, pool_size: int = 10):
        self.url = make_url(url)
        engine_kwargs = {"future": True, "pool_pre_ping": True}
        if self.url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            # Fixed-size pool; excess checkouts queue until a connection frees up.
            engine_kwargs.update(pool_size=pool_size, max_overflow=0)
        self.engine: Engine = create_engine(self.url, **engine_kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    def session(self) -> Session:
        return self.session_factory()

    def ensure_database(self) -> None:
        """Create the target database on the server when it does not exist yet."""
        backend = self.url.get_backend_name()
        name = self.url.database
        if backend == "sqlite" or not name:
            return

        if backend == "postgresql":
            admin_url = self.url.set(database="postgres")
        else:
            admin_url = self.url.set(database=None)

        admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT", future=True)
        quoted = admin_engine.dialect.identifier_preparer.quote(name)
        try:
            with admin_engine.connect() as conn:
                if backend == "postgresql":
                    exists = conn.execute(
                        text("SELECT 1 FROM pg_database WHERE datname = :name"), {"name": name}
                    ).first()
                    if exists is None:
                        conn.execute(text(f"CREATE DATABASE {quoted}"))
                        logger.info("database.created", extra={"database": name})
                else:
                    conn.execute(text(f"CREATE DATABASE IF NOT EXISTS {quoted}"))
        finally:
            admin_engine.dispose()

    def create_all(self) -> None:
        # Imported for its side effect of registering the table on Base.metadata.
        from . import entities  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def init(self) -> None:
        self.ensure_database()
        self.create_all()
        logger.info("database.ready", extra={"backend": self.url.get_backend_name()})

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session(request: Request) -> Generator:
    session = get_database(request).session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
