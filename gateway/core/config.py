"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
    "sqlite://",
)

# HMAC family only: the gateway signs and verifies with one shared secret.
ALLOWED_JWT_ALGORITHMS = ("HS256", "HS384", "HS512")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # SQLite is fine for dev; use PostgreSQL in prod.
    DATABASE_URL: str = "sqlite:///./gateway.db"

    # JWT authentication. The secret has no default and must come from the environment.
    JWT_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_SECONDS: int = 60

    BCRYPT_ROUNDS: int = 10

    # RBAC
    DEFAULT_ROLE: str = "common_user"
    # When True, POST /addRol over an existing name replaces it instead of returning 400.
    ROLE_CREATE_OVERWRITE: bool = False
    ROLE_UPDATE_RETRIES: int = 3

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL or SQLite URL (e.g. postgresql:// or sqlite:///)"
            )
        return v.strip()

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError("API_PREFIX must be empty or start with '/'")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT_SECRET must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        alg = v.strip().upper()
        if alg not in ALLOWED_JWT_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {', '.join(ALLOWED_JWT_ALGORITHMS)}"
            )
        return alg

    @field_validator("JWT_EXPIRE_SECONDS")
    @classmethod
    def validate_jwt_expire_seconds(cls, v: int) -> int:
        if v < 1 or v > 604800:
            raise ValueError(
                "JWT_EXPIRE_SECONDS must be between 1 and 604800 (1 sec to 7 days)"
            )
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 15:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 15")
        return v

    @field_validator("DEFAULT_ROLE")
    @classmethod
    def validate_default_role(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DEFAULT_ROLE must be set and non-empty")
        return v.strip()

    @field_validator("ROLE_UPDATE_RETRIES")
    @classmethod
    def validate_role_update_retries(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("ROLE_UPDATE_RETRIES must be between 1 and 10")
        return v


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance built from the environment."""
    return Settings()
