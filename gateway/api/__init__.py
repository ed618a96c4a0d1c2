"""API routes."""

from fastapi import APIRouter

from gateway.api.routes import auth, health, roles, users

router = APIRouter()
router.include_router(health.router, tags=["health"])
router.include_router(auth.router, tags=["auth"])
router.include_router(users.router, tags=["users"])
router.include_router(roles.router, tags=["roles"])
