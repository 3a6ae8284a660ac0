from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Callable, Optional
import logging

from social_auth.db.database import get_db
from social_auth.core.security import PasswordHasher, TokenCodec, password_hasher, token_codec
from social_auth.models import User, UserRole
from social_auth.repositories.user_repo import UserDirectory, UserRepository
from social_auth.repositories.follow_repo import FollowRepository
from social_auth.services.auth_service import AuthService, SocialGraph
from social_auth.services.access_control import AccessGate, RoleGuard, TOKEN_COOKIE_NAME
from social_auth.utils.email import NotificationSender, get_notification_sender

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI; the cookie is accepted as well
security = HTTPBearer(auto_error=False)


# =====================================================
# Collaborators
# =====================================================
async def get_user_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    return UserRepository(db)


async def get_social_graph(db: AsyncSession = Depends(get_db)) -> SocialGraph:
    return FollowRepository(db)


def get_notifier() -> NotificationSender:
    return get_notification_sender()


def get_token_codec() -> TokenCodec:
    return token_codec


def get_password_hasher() -> PasswordHasher:
    return password_hasher


async def get_auth_service(
    directory: UserDirectory = Depends(get_user_directory),
    notifier: NotificationSender = Depends(get_notifier),
    follows: SocialGraph = Depends(get_social_graph),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    return AuthService(
        directory=directory,
        notifier=notifier,
        hasher=hasher,
        codec=codec,
        follows=follows,
    )


async def get_access_gate(
    directory: UserDirectory = Depends(get_user_directory),
    codec: TokenCodec = Depends(get_token_codec),
) -> AccessGate:
    return AccessGate(directory, codec)


def _authorization_header(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is None:
        return None
    return f"{credentials.scheme} {credentials.credentials}"


# =====================================================
# Get Current user
# =====================================================
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    jwt_cookie: Optional[str] = Cookie(default=None, alias=TOKEN_COOKIE_NAME),
    gate: AccessGate = Depends(get_access_gate),
) -> User:
    """
    Dependency that validates the session token and returns the current user.

    The user is also attached to ``request.state.user``.

    Raises:
        AuthenticationError: If the token is missing, invalid or stale
    """
    user = await gate.authenticate(_authorization_header(credentials), jwt_cookie)
    request.state.user = user
    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    jwt_cookie: Optional[str] = Cookie(default=None, alias=TOKEN_COOKIE_NAME),
    gate: AccessGate = Depends(get_access_gate),
) -> Optional[User]:
    """
    Like get_current_user, but anonymous visitors get None instead of a 401.
    """
    user = await gate.identify(_authorization_header(credentials), jwt_cookie)
    request.state.user = user
    return user


# =====================================================
# Role Guard
# =====================================================
def require_roles(*roles: UserRole) -> Callable:
    """
    Build a dependency that lets only the given roles through.

    Usage:
        @router.get("/", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    guard = RoleGuard(*roles)

    async def role_dependency(
        request: Request,
        current_user: User = Depends(get_current_user),
    ) -> User:
        return guard.check(getattr(request.state, "user", None))

    return role_dependency
