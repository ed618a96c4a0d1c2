"""FastAPI application factory and entrypoint. No business logic; only wiring and middleware."""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gateway.api import router
from gateway.core.config import Settings, get_settings
from gateway.core.database import create_db_engine, create_session_factory, init_db
from gateway.core.errors import register_exception_handlers
from gateway.core.logging import configure_logging
from gateway.core.security import TokenService
from gateway.services.authentication import AuthenticationService
from gateway.services.roles import RoleRegistry
from gateway.services.store import CredentialStore
from gateway.services.users import UserAdminService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the app around one Settings object.

    Settings are read once here (or passed in by tests) and handed to each
    collaborator's constructor; nothing reads configuration from module globals.
    """
    if settings is None:
        load_dotenv()
        settings = get_settings()

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    if settings.APP_ENV == "dev":
        init_db(engine)
    session_factory = create_session_factory(engine)

    store = CredentialStore(session_factory)
    token_service = TokenService(settings)

    app = FastAPI(
        title="RBAC Gateway",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.store = store
    app.state.token_service = token_service
    app.state.auth_service = AuthenticationService(store, token_service, settings)
    app.state.user_admin = UserAdminService(store)
    app.state.role_registry = RoleRegistry(store, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router, prefix=settings.API_PREFIX)
    return app


def run() -> None:
    """Console entrypoint: configure logging and serve with uvicorn."""
    import uvicorn

    load_dotenv()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info("Starting gateway on %s:%s", settings.HOST, settings.PORT)
    uvicorn.run(
        "gateway.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
