"""Shared builders for tests: settings with a test secret and an in-memory store."""

from gateway.core.config import Settings
from gateway.core.database import create_db_engine, create_session_factory, init_db
from gateway.services.store import CredentialStore

TEST_SECRET = "test-secret-not-for-production"


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: in-memory SQLite, cheap bcrypt, fixed secret."""
    values: dict[str, object] = {
        "JWT_SECRET": TEST_SECRET,
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
        "APP_ENV": "dev",
    }
    values.update(overrides)
    return Settings(**values)


def make_store(database_url: str = "sqlite://") -> CredentialStore:
    """A CredentialStore over a fresh database with tables created."""
    engine = create_db_engine(database_url)
    init_db(engine)
    return CredentialStore(create_session_factory(engine))
