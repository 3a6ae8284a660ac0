from fastapi import APIRouter
from social_auth.api.v1.endpoints import auth, users

# ============================================================
# Main API v1 Router
# ============================================================

api_router = APIRouter()

# Signup, login, logout and password flows at /users
api_router.include_router(
    auth.router,
    prefix="/users"
)

# Profile and admin routes, also at /users
api_router.include_router(
    users.router,
    prefix="/users"
)
