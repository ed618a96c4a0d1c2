"""Database engine and session management."""

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build the engine for DATABASE_URL.

    SQLite connections are shared across the thread pool that runs store calls;
    an in-memory SQLite URL additionally needs a single static connection so every
    thread sees the same database.
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, echo=echo)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return the session factory used by the credential store."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables that do not exist yet (dev and tests; prod uses alembic)."""
    from gateway.models import Base

    Base.metadata.create_all(bind=engine)


def check_db_connected(session_factory: sessionmaker[Session]) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        with session_factory() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
