"""
Access Control

AccessGate turns the token on a request into a user; RoleGuard decides
whether that user may go further. Both are framework-free; the FastAPI
dependencies in ``social_auth.api.deps`` wrap them.
"""

import logging
from typing import Iterable, Optional

from social_auth.core.exceptions import AuthError, AuthenticationError, AuthorizationError
from social_auth.core.security import TokenCodec, TokenInvalid
from social_auth.models import User, UserRole
from social_auth.repositories.user_repo import UserDirectory
from social_auth.services.auth_service import LOGGED_OUT_TOKEN

logger = logging.getLogger(__name__)

TOKEN_COOKIE_NAME = "jwt"


class AccessGate:
    """
    Authenticates requests from a bearer header or the ``jwt`` cookie.
    """

    def __init__(self, directory: UserDirectory, codec: TokenCodec):
        self.directory = directory
        self.codec = codec

    @staticmethod
    def extract_token(
        authorization: Optional[str] = None,
        cookie: Optional[str] = None,
    ) -> Optional[str]:
        """Prefer ``Authorization: Bearer <token>``, fall back to the cookie."""
        if authorization:
            scheme, _, credentials = authorization.partition(" ")
            if scheme.lower() == "bearer" and credentials.strip():
                return credentials.strip()

        if cookie and cookie != LOGGED_OUT_TOKEN:
            return cookie

        return None

    async def resolve(self, token: Optional[str]) -> User:
        """
        Return the user a token belongs to.

        Raises:
            AuthenticationError: If there is no token, the token is invalid,
                the user is gone, or the password changed after issue
        """
        if not token:
            raise AuthenticationError("You are not logged in! Please log in to get access.")

        try:
            claims = self.codec.verify(token)
        except TokenInvalid as e:
            logger.debug("Rejected token: %s", e)
            raise AuthenticationError("Invalid or expired token. Please log in again.") from e

        user = await self.directory.get_by_id(claims.user_id)
        if user is None:
            raise AuthenticationError("The user belonging to this token does no longer exist.")

        if user.changed_password_after(claims.issued_at):
            raise AuthenticationError("User recently changed password! Please log in again.")

        return user

    async def authenticate(
        self,
        authorization: Optional[str] = None,
        cookie: Optional[str] = None,
    ) -> User:
        return await self.resolve(self.extract_token(authorization, cookie))

    async def identify(
        self,
        authorization: Optional[str] = None,
        cookie: Optional[str] = None,
    ) -> Optional[User]:
        """Same as ``authenticate`` but returns None instead of failing."""
        try:
            return await self.authenticate(authorization, cookie)
        except AuthError:
            return None


class RoleGuard:
    """
    Allows a request through only for users holding one of the given roles.
    """

    def __init__(self, *roles: UserRole):
        if not roles:
            raise ValueError("RoleGuard needs at least one role")
        self.roles = frozenset(UserRole(r) for r in roles)

    @staticmethod
    def allows(allowed: Iterable[UserRole], role: Optional[UserRole]) -> bool:
        if role is None:
            return False
        try:
            return UserRole(role) in set(allowed)
        except ValueError:
            return False

    def check(self, user: Optional[User]) -> User:
        """
        Raises:
            AuthorizationError: If there is no user or the role is not allowed
        """
        if user is None or not self.allows(self.roles, user.role):
            raise AuthorizationError("You do not have permission to perform this action")
        return user
