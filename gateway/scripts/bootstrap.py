"""
Seed the gateway: every role-management endpoint is itself protected, so the first
admin role and user have to be created out of band. Run from project root:
  python -m gateway.scripts.bootstrap init-db
  python -m gateway.scripts.bootstrap create-role admin --all
  python -m gateway.scripts.bootstrap create-user admin@example.com admin PASSWORD --role admin
"""
import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from gateway.core.config import Settings, get_settings
from gateway.core.database import create_db_engine, create_session_factory, init_db
from gateway.core.errors import GatewayError
from gateway.core.logging import configure_logging
from gateway.core.security import TokenService
from gateway.services.authentication import AuthenticationService
from gateway.services.roles import RoleRegistry
from gateway.services.store import CredentialStore

logger = logging.getLogger(__name__)

# Every permission a route in gateway.api.routes asks for.
KNOWN_PERMISSIONS = (
    "getUser",
    "deleteUser",
    "updateUser",
    "updateRol",
    "addRol",
    "deleteRol",
    "addPermission",
    "deletePermission",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bootstrap roles and users for the RBAC gateway.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables that do not exist yet")

    role = sub.add_parser("create-role", help="Create (or with --overwrite, replace) a role")
    role.add_argument("name")
    role.add_argument("permissions", nargs="*", help="Permission names")
    role.add_argument("--all", action="store_true", help="Grant every known permission")
    role.add_argument("--overwrite", action="store_true", help="Replace an existing role")

    user = sub.add_parser("create-user", help="Register a user")
    user.add_argument("email")
    user.add_argument("username")
    user.add_argument("password")
    user.add_argument("--role", default=None, help="Role name (default: DEFAULT_ROLE)")
    return parser


async def _create_role(store: CredentialStore, settings: Settings, args: argparse.Namespace) -> str:
    perms = list(KNOWN_PERMISSIONS) if args.all else []
    perms.extend(args.permissions)
    if args.overwrite:
        settings = settings.model_copy(update={"ROLE_CREATE_OVERWRITE": True})
    role = await RoleRegistry(store, settings).create_role(args.name, perms)
    return f"Role '{role.name}' saved with permissions: {', '.join(sorted(role.permissions)) or '(none)'}."


async def _create_user(store: CredentialStore, settings: Settings, args: argparse.Namespace) -> str:
    auth = AuthenticationService(store, TokenService(settings), settings)
    user = await auth.register(args.email, args.username, args.password, args.role)
    return f"Created user '{user.username}' ({user.email}) with role '{user.role}'."


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    try:
        init_db(engine)
        if args.command == "init-db":
            print("Tables created.")
            return 0
        store = CredentialStore(create_session_factory(engine))
        if args.command == "create-role":
            message = asyncio.run(_create_role(store, settings, args))
        else:
            message = asyncio.run(_create_user(store, settings, args))
    except GatewayError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    print(message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
